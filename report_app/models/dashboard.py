"""
Dashboard entities — Widget, Parameter, Dashboard, GlobalSettings.

Plain dataclasses with ``to_dict`` / ``from_dict`` so the whole
dashboard round-trips through the persisted JSON blob.  Widget keys
that the pipeline does not interpret (theme, legend flags,
``chartConfig`` …) are carried in ``extra`` and written back verbatim.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from report_app.models.data_source import DataSourceDescriptor, Record

CHART_TYPES = (
    "line", "bar", "area", "pie", "stat", "composed", "radar", "scatter",
    "funnel", "wordCloud", "table", "radialBar", "treemap", "heatmap",
    "timeline",
)

PARAM_TEXT = "text"
PARAM_DATE = "date"
PARAM_DATE_RANGE = "date-range"
PARAM_SELECT = "select"
PARAMETER_TYPES = (PARAM_TEXT, PARAM_DATE, PARAM_DATE_RANGE, PARAM_SELECT)


def new_id() -> str:
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


# ─────────────────────────────────────────────────────────────
#  PARAMETERS
# ─────────────────────────────────────────────────────────────

@dataclass(slots=True)
class ParameterOption:
    """Single selectable option for a ``select`` parameter."""
    label: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ParameterOption":
        return cls(label=str(raw.get("label", "")), value=raw.get("value"))


@dataclass
class Parameter:
    """
    A named, user-editable filter bound into templates as ``{{key}}``.

    ``date-range`` parameters never hold a value under ``key`` itself;
    the registry stores ``<key>_start`` and ``<key>_end`` instead.
    """
    key: str
    label: str = ""
    type: str = PARAM_TEXT
    default_value: Any = None
    width: Optional[int] = None
    options_data_source: Optional[DataSourceDescriptor] = None
    loaded_options: Optional[List[ParameterOption]] = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "key": self.key,
            "label": self.label,
            "type": self.type,
        }
        if self.default_value is not None:
            out["defaultValue"] = self.default_value
        if self.width is not None:
            out["width"] = self.width
        if self.options_data_source is not None:
            out["optionsDataSource"] = self.options_data_source.to_dict()
        if self.loaded_options is not None:
            out["loadedOptions"] = [o.to_dict() for o in self.loaded_options]
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Parameter":
        ptype = raw.get("type") or PARAM_TEXT
        if ptype not in PARAMETER_TYPES:
            raise ValueError(f"Unknown parameter type '{ptype}'")
        options_source = raw.get("optionsDataSource")
        loaded = raw.get("loadedOptions")
        return cls(
            id=str(raw.get("id") or new_id()),
            key=str(raw.get("key") or ""),
            label=raw.get("label") or raw.get("key") or "",
            type=ptype,
            default_value=raw.get("defaultValue"),
            width=raw.get("width"),
            options_data_source=(
                DataSourceDescriptor.from_dict(options_source)
                if options_source else None
            ),
            loaded_options=(
                [ParameterOption.from_dict(o) for o in loaded]
                if loaded is not None else None
            ),
        )


# ─────────────────────────────────────────────────────────────
#  WIDGETS
# ─────────────────────────────────────────────────────────────

@dataclass
class DataMapping:
    """Which record keys feed the chart axes."""
    name_key: str = "name"
    value_key: str = "value"
    y_key: Optional[str] = None
    series_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"nameKey": self.name_key, "valueKey": self.value_key}
        if self.y_key:
            out["yKey"] = self.y_key
        if self.series_name:
            out["seriesName"] = self.series_name
        return out

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "DataMapping":
        raw = raw or {}
        return cls(
            name_key=raw.get("nameKey") or "name",
            value_key=raw.get("valueKey") or "value",
            y_key=raw.get("yKey"),
            series_name=raw.get("seriesName"),
        )


# Keys handled explicitly by Widget.from_dict; everything else goes to ``extra``
_WIDGET_KEYS = {
    "id", "type", "title", "data", "dataSource", "dataMapping",
    "colSpan", "height", "description",
}


@dataclass
class Widget:
    """
    A chart/table unit bound to one data source.

    ``data`` is the cache of the most recent successful resolution.
    """
    type: str = "bar"
    title: str = ""
    data: List[Record] = field(default_factory=list)
    data_source: DataSourceDescriptor = field(default_factory=DataSourceDescriptor.empty)
    data_mapping: DataMapping = field(default_factory=DataMapping)
    col_span: int = 6
    height: int = 350
    description: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        out.update({
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "data": list(self.data),
            "dataSource": self.data_source.to_dict(),
            "dataMapping": self.data_mapping.to_dict(),
            "colSpan": self.col_span,
            "height": self.height,
        })
        if self.description is not None:
            out["description"] = self.description
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Widget":
        wtype = raw.get("type") or "bar"
        if wtype not in CHART_TYPES:
            raise ValueError(f"Unknown widget type '{wtype}'")
        data = list(raw.get("data") or [])
        source = raw.get("dataSource")
        return cls(
            id=str(raw.get("id") or new_id()),
            type=wtype,
            title=raw.get("title") or "",
            data=data,
            # Widgets authored without a source keep their inline data as static
            data_source=(
                DataSourceDescriptor.from_dict(source)
                if source else DataSourceDescriptor.from_records(data)
            ),
            data_mapping=DataMapping.from_dict(raw.get("dataMapping")),
            col_span=_clamp(int(raw.get("colSpan") or 6), 1, 12),
            height=int(raw.get("height") or 350),
            description=raw.get("description"),
            extra={k: v for k, v in raw.items() if k not in _WIDGET_KEYS},
        )


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


# ─────────────────────────────────────────────────────────────
#  DASHBOARD & SETTINGS
# ─────────────────────────────────────────────────────────────

@dataclass
class Dashboard:
    """Ordered widgets and parameters plus title metadata."""
    title: str = "My Dashboard"
    widgets: List[Widget] = field(default_factory=list)
    parameters: List[Parameter] = field(default_factory=list)
    created_at: int = field(default_factory=now_ms)
    id: str = "default"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "widgets": [w.to_dict() for w in self.widgets],
            "parameters": [p.to_dict() for p in self.parameters],
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Dashboard":
        return cls(
            id=str(raw.get("id") or "default"),
            title=raw.get("title") or "My Dashboard",
            widgets=[Widget.from_dict(w) for w in raw.get("widgets") or []],
            parameters=[Parameter.from_dict(p) for p in raw.get("parameters") or []],
            created_at=int(raw.get("createdAt") or now_ms()),
        )


@dataclass
class AIConfig:
    """Chat-model provider selection for query simulation and the assistant (the API key stays in the environment)."""
    provider: str = "openai"
    model: Optional[str] = None
    base_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"provider": self.provider, "model": self.model, "baseUrl": self.base_url}

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "AIConfig":
        raw = raw or {}
        return cls(
            provider=raw.get("provider") or "openai",
            model=raw.get("model"),
            base_url=raw.get("baseUrl"),
        )


@dataclass
class GlobalSettings:
    theme: str = "light"
    ai: AIConfig = field(default_factory=AIConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {"theme": self.theme, "ai": self.ai.to_dict()}

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "GlobalSettings":
        raw = raw or {}
        return cls(theme=raw.get("theme") or "light", ai=AIConfig.from_dict(raw.get("ai")))
