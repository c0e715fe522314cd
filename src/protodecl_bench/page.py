"""
Page lifecycle host and the schema-import benchmark page.

A NavigationPage owns display state and is driven by ``mount()``, which runs
``on_create()`` once per instance and then renders. ProtoImportPage times the
indexed and non-indexed imports in ``on_create()``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from .config import BenchmarkSettings
from .runner import Loader, measure_import

S = TypeVar("S", bound=BaseModel)


class NavigationPage(Generic[S]):
    """
    Base class for a page holding immutable display state.

    Subclasses set ``initial_state`` and override ``on_create`` and ``render``.
    Exceptions raised by ``on_create`` propagate out of ``mount``, and the
    page is not marked as created, so nothing is rendered for it.
    """

    initial_state: ClassVar[BaseModel]

    def __init__(self) -> None:
        self.state: S = self.initial_state.model_copy()  # type: ignore[assignment]
        self._created = False

    @property
    def created(self) -> bool:
        return self._created

    def set_state(self, **changes: Any) -> None:
        """Replace the state with a validated copy carrying ``changes``."""
        self.state = type(self.state).model_validate({**self.state.model_dump(), **changes})

    def mount(self) -> list[str]:
        """Run ``on_create`` on the first call only, then render."""
        if not self._created:
            self.on_create()
            self._created = True
        return self.render()

    def on_create(self) -> None:
        """Called once, before the first render."""

    def render(self) -> list[str]:
        raise NotImplementedError


class ImportLatencyState(BaseModel):
    """Import latencies in milliseconds for the two schema variants."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    import_latency: float = 0.0
    import_latency_no_index: float = 0.0


class ProtoImportPage(NavigationPage[ImportLatencyState]):
    """Times the indexed and the non-indexed schema import, once."""

    initial_state = ImportLatencyState()

    def __init__(self, settings: BenchmarkSettings | None = None, loader: Loader | None = None) -> None:
        super().__init__()
        self.settings = settings or BenchmarkSettings()
        self.loader = loader if loader is not None else self.settings.loader()

    def on_create(self) -> None:
        import_latency = measure_import(self.settings.indexed_source, self.loader)
        import_latency_no_index = measure_import(self.settings.non_indexed_source, self.loader)
        self.set_state(import_latency=import_latency, import_latency_no_index=import_latency_no_index)

    @property
    def headline(self) -> str:
        return f"{self.settings.message_count} messages and {self.settings.enum_count} enums imported in"

    def render(self) -> list[str]:
        return [
            self.headline,
            f"{self.state.import_latency:.2f} ms",
            f"{self.state.import_latency_no_index:.2f} ms",
        ]

    def report(self) -> dict[str, Any]:
        """State and schema counts, in the shape ImportReportSchema dumps."""
        return {
            **self.state.model_dump(),
            "message_count": self.settings.message_count,
            "enum_count": self.settings.enum_count,
        }
