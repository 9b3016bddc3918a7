"""confbind: typed, observable, transactional configuration objects."""

from importlib.metadata import version as _version

__version__ = _version("confbind")

from confbind.events import ChangeEvent, ReloadEvent, Veto, Outcome
from confbind.errors import (
    ConfbindError,
    ConversionError,
    RollbackBatch,
    RollbackOperation,
    SourceLoadError,
    UnsupportedOperationError,
    VetoSignal,
)
from confbind.store import PropertyStore
from confbind.broker import ChangeBroker, PropertyChangeListener
from confbind.mutator import BatchMutator, BatchResult
from confbind.reload import ReloadCoordinator
from confbind.sources import MappingSource, PropertiesFileSource, Source
from confbind.config import Accessible, Config, Listable, Mutable, Observable, Reloadable, prop
from confbind.dispatch import Operation, OperationDispatcher
from confbind.factory import create
# hot_reload and textual NOT auto-imported — opt-in only

__all__ = [
    "Accessible",
    "BatchMutator",
    "BatchResult",
    "ChangeBroker",
    "ChangeEvent",
    "ConfbindError",
    "Config",
    "ConversionError",
    "Listable",
    "MappingSource",
    "Mutable",
    "Observable",
    "Operation",
    "OperationDispatcher",
    "Outcome",
    "PropertiesFileSource",
    "PropertyChangeListener",
    "PropertyStore",
    "ReloadCoordinator",
    "ReloadEvent",
    "RollbackBatch",
    "RollbackOperation",
    "Source",
    "SourceLoadError",
    "UnsupportedOperationError",
    "Veto",
    "VetoSignal",
    "create",
    "prop",
]
