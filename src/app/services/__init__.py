"""Serviços de aplicação do endpoint de Flow.

Unidades reutilizáveis sem IO direto, exceto o encaminhamento opcional
(que delega o IO para app/infra/http).
"""

from app.services.flow_replies import (
    build_flow_reply,
    health_reply,
    is_health_check,
    is_liveness_probe,
    success_reply,
)
from app.services.form_fields import extract_form_fields
from app.services.submission_forwarder import SubmissionForwarder

__all__ = [
    "SubmissionForwarder",
    "build_flow_reply",
    "extract_form_fields",
    "health_reply",
    "is_health_check",
    "is_liveness_probe",
    "success_reply",
]
