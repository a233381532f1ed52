from .operations import (
    AddLiquidityResponse,
    AllowancesResponse,
    ApproveResponse,
    BalancesResponse,
    EstimateGasResponse,
    NetworksResponse,
    StatusResponse,
    TransactionResponse,
    WrapResponse,
)

__all__ = [
    "TransactionResponse",
    "WrapResponse",
    "ApproveResponse",
    "AddLiquidityResponse",
    "EstimateGasResponse",
    "StatusResponse",
    "BalancesResponse",
    "AllowancesResponse",
    "NetworksResponse",
]
