from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored string, or None when the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a string under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key; missing keys are ignored."""
        pass
