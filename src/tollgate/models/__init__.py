"""Built-in model types shipped with the gateway."""

from tollgate.models.generic import GenericPayload
from tollgate.models.incident import IncidentPayload, IncidentValidator

__all__ = ["GenericPayload", "IncidentPayload", "IncidentValidator"]
