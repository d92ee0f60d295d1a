from leverage_paths.adapters.leverage_adapter.adapter import LeverageAdapter

__all__ = ["LeverageAdapter"]
