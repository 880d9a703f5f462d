"""Dashboard controller and chart descriptions."""

__all__ = ["DashboardController", "DashboardSnapshot"]


def __getattr__(name: str):
    if name in __all__:
        from dashboard import controller

        return getattr(controller, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
