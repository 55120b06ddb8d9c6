"""In-memory implementation of LocalStore for testing."""

from port.local_store import LocalStoreError


class FakeLocalStore:
    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[tuple[str, str | None]] = []

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise LocalStoreError(f"Simulated read failure for {key}")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise LocalStoreError(f"Simulated write failure for {key}")
        self.data[key] = value
        self.writes.append((key, value))

    def remove(self, key: str) -> None:
        if self.fail_writes:
            raise LocalStoreError(f"Simulated write failure for {key}")
        self.data.pop(key, None)
        self.writes.append((key, None))
