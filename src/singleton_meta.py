from typing import Any, Dict


class SingletonMeta(type):
    """Metaclass that hands out one shared instance per class."""

    _instances: Dict[type, Any] = {}

    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]

    @classmethod
    def reset(mcs, target: type) -> None:
        """Forget the shared instance of ``target`` (used by tests and --config reloads)."""
        mcs._instances.pop(target, None)
