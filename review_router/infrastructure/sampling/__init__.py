from .gas_client import GasSampleClient

__all__ = ["GasSampleClient"]
