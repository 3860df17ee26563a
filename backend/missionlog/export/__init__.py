from missionlog.export.batch import (
    BatchExport,
    BatchExportAggregator,
    BatchItemFailure,
    EmptySelectionError,
    NoOutputError,
    filter_missions_in_range,
)
from missionlog.export.documents import DocumentGenerator, GeneratedDocument

__all__ = [
    "BatchExport",
    "BatchExportAggregator",
    "BatchItemFailure",
    "DocumentGenerator",
    "EmptySelectionError",
    "GeneratedDocument",
    "NoOutputError",
    "filter_missions_in_range",
]
