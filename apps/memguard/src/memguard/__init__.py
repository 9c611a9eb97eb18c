def __getattr__(name: str):
    if name == "create_app":
        from memguard.main import create_app

        return create_app
    raise AttributeError(f"module 'memguard' has no attribute {name}")


__all__ = ["create_app"]
