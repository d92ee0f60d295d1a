ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

__all__ = ["ZERO_ADDRESS"]
