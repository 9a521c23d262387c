"""
Keyword detector for integration needs.

A category is detected when any of its keyword phrases appears in the
normalized transcript. Confidence is coarse: 0.8 when anything matched.
"""

from dataclasses import dataclass, field

from ..models.enums import Integrations
from ..normalize import contains_phrase, normalize

DETECTED_CONFIDENCE = 0.8

INTEGRATION_KEYWORDS: dict[Integrations, tuple[str, ...]] = {
    Integrations.CRM: (
        'crm',
        'salesforce',
        'hubspot',
        'zoho',
        'sistema de clientes',
        'gestión de clientes',
    ),
    Integrations.SISTEMA_CITAS: (
        'sistema de citas',
        'agenda',
        'calendly',
        'reserva de citas',
        'gestión de citas',
        'programar citas',
        'disponibilidad de citas',
    ),
    Integrations.ECOMMERCE: (
        'ecommerce',
        'e-commerce',
        'tienda online',
        'tienda en línea',
        'shopify',
        'woocommerce',
        'magento',
        'ventas online',
        'ventas en línea',
    ),
    Integrations.TICKETS: (
        'tickets',
        'sistema de tickets',
        'zendesk',
        'freshdesk',
        'soporte técnico',
        'helpdesk',
    ),
    Integrations.RESERVAS: (
        'reservas',
        'sistema de reservas',
        'booking',
        'gestión de reservas',
        'plataforma de reservas',
    ),
    Integrations.ERP: (
        'erp',
        'sap',
        'oracle',
        'odoo',
        'sistema empresarial',
    ),
    Integrations.WHATSAPP: (
        'whatsapp',
        'wsp',
        'mensajería',
    ),
    Integrations.BASE_DATOS: (
        'base de datos',
        'database',
        'bases de datos',
        'integrar con nuestros sistemas',
        'sistemas actuales',
    ),
}


@dataclass
class IntegrationsDetection:
    """Integration categories found in a transcript."""

    integrations: list[Integrations] = field(default_factory=list)
    confidence: float = 0.0


def detect_integrations(transcript: str) -> IntegrationsDetection:
    """
    Detect every integration category mentioned in the transcript.

    Args:
        transcript: Raw transcript text

    Returns:
        IntegrationsDetection listing matched categories in vocabulary
        order, with confidence 0.8 if any matched and 0 otherwise
    """
    normalized = normalize(transcript)
    detected = [
        integration
        for integration, keywords in INTEGRATION_KEYWORDS.items()
        if any(contains_phrase(normalized, keyword) for keyword in keywords)
    ]
    return IntegrationsDetection(
        integrations=detected,
        confidence=DETECTED_CONFIDENCE if detected else 0.0,
    )
