"""Fixed, ordered metric schema for completed WebPageTest results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final


@dataclass(frozen=True)
class MetricField:
    """One positional metric in the result schema.

    Attributes:
        source_field: Field name inside the median first-view bundle.
        display_name: Human-readable name used in alert text.
        units: Unit label used in alert text, possibly empty.
    """

    source_field: str
    display_name: str
    units: str


METRIC_SCHEMA: Final[tuple[MetricField, ...]] = (
    MetricField(source_field="requestsFull", display_name="Number of Requests", units=""),
    MetricField(source_field="bytesIn", display_name="Bytes In", units="bytes"),
    MetricField(source_field="SpeedIndex", display_name="Webpagetest Speed Index", units=""),
    MetricField(source_field="render", display_name="Time to First Paint", units="ms"),
    MetricField(source_field="visualComplete", display_name="Visually Complete", units="ms"),
    MetricField(source_field="fullyLoaded", display_name="Fully Loaded", units="ms"),
    MetricField(source_field="image_total", display_name="Image Bytes", units="bytes"),
    MetricField(source_field="image_savings", display_name="Image Compression Savings", units="bytes"),
    MetricField(source_field="gzip_savings", display_name="Compression Savings", units="bytes"),
)

METRIC_COUNT: Final[int] = len(METRIC_SCHEMA)


def domain_extract_metrics(first_view: dict[str, Any]) -> tuple[float, ...]:
    """Extract schema-ordered metric values from a median first-view bundle.

    Args:
        first_view: Mapping of WebPageTest metric names to values.

    Returns:
        tuple[float, ...]: Metric values in schema order.

    Raises:
        KeyError: Raised when a schema field is missing from the bundle.
        ValueError: Raised when a schema field is not numeric.
    """

    extracted_values: list[float] = []
    for metric_field in METRIC_SCHEMA:
        raw_value = first_view[metric_field.source_field]
        if isinstance(raw_value, bool):
            raise ValueError(f"metric {metric_field.source_field} must be numeric")
        try:
            extracted_values.append(float(raw_value))
        except (TypeError, ValueError) as error:
            raise ValueError(f"metric {metric_field.source_field} must be numeric") from error
    return tuple(extracted_values)
