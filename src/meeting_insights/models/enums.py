"""
Controlled vocabularies for meeting extractions.

Every categorical dimension of an Extraction is a closed set of string
tokens. The tokens are Spanish domain terms and are persisted verbatim,
so renaming a member is a data migration.
"""

from enum import Enum


class Industry(str, Enum):
    """Industry the prospect operates in."""

    SERVICIOS_FINANCIEROS = 'SERVICIOS_FINANCIEROS'
    RETAIL = 'RETAIL'
    ECOMMERCE = 'ECOMMERCE'
    SALUD = 'SALUD'
    EDUCACION = 'EDUCACION'
    TECNOLOGIA = 'TECNOLOGIA'
    LOGISTICA = 'LOGISTICA'
    TURISMO = 'TURISMO'
    HOSPITALIDAD = 'HOSPITALIDAD'
    CONSULTORIA = 'CONSULTORIA'
    LEGAL = 'LEGAL'
    INMOBILIARIA = 'INMOBILIARIA'
    ALIMENTOS = 'ALIMENTOS'
    MODA = 'MODA'
    EVENTOS = 'EVENTOS'
    MARKETING = 'MARKETING'
    ARQUITECTURA = 'ARQUITECTURA'
    CONSTRUCCION = 'CONSTRUCCION'
    ENERGIA = 'ENERGIA'
    AGRICULTURA = 'AGRICULTURA'
    ONG = 'ONG'
    OTRO = 'OTRO'


class BusinessModel(str, Enum):
    B2B = 'B2B'
    B2C = 'B2C'
    B2B2C = 'B2B2C'
    MARKETPLACE = 'MARKETPLACE'


class JtbdPrimary(str, Enum):
    """Primary jobs-to-be-done the prospect wants solved."""

    AUTOMATIZAR_ATENCION = 'AUTOMATIZAR_ATENCION'
    REDUCIR_TIEMPOS = 'REDUCIR_TIEMPOS'
    ESCALAR_OPERACIONES = 'ESCALAR_OPERACIONES'
    MEJORAR_EXPERIENCIA = 'MEJORAR_EXPERIENCIA'
    LIBERAR_EQUIPO = 'LIBERAR_EQUIPO'
    MULTIIDIOMA = 'MULTIIDIOMA'
    DISPONIBILIDAD_24_7 = 'DISPONIBILIDAD_24_7'


class PainPoints(str, Enum):
    VOLUMEN_ALTO = 'VOLUMEN_ALTO'
    RESPUESTAS_LENTAS = 'RESPUESTAS_LENTAS'
    FALTA_PERSONALIZACION = 'FALTA_PERSONALIZACION'
    SOBRECARGA_EQUIPO = 'SOBRECARGA_EQUIPO'
    CONSULTAS_REPETITIVAS = 'CONSULTAS_REPETITIVAS'
    GESTION_MANUAL = 'GESTION_MANUAL'
    PICOS_DEMANDA = 'PICOS_DEMANDA'
    MULTICANAL = 'MULTICANAL'


class LeadSource(str, Enum):
    """How the prospect heard about the product."""

    LINKEDIN = 'LINKEDIN'
    GOOGLE = 'GOOGLE'
    CONFERENCIA = 'CONFERENCIA'
    RECOMENDACION = 'RECOMENDACION'
    WEBINAR = 'WEBINAR'
    PODCAST = 'PODCAST'
    FERIA = 'FERIA'
    ARTICULO = 'ARTICULO'
    NETWORKING = 'NETWORKING'
    REDES_SOCIALES = 'REDES_SOCIALES'
    DESCONOCIDO = 'DESCONOCIDO'


class ProcessMaturity(str, Enum):
    MANUAL = 'MANUAL'
    PARCIALMENTE_AUTOMATIZADO = 'PARCIALMENTE_AUTOMATIZADO'
    AUTOMATIZADO = 'AUTOMATIZADO'


class ToolingMaturity(str, Enum):
    SIN_HERRAMIENTAS = 'SIN_HERRAMIENTAS'
    HERRAMIENTAS_BASICAS = 'HERRAMIENTAS_BASICAS'
    CRM_INTEGRADO = 'CRM_INTEGRADO'


class KnowledgeComplexity(str, Enum):
    SIMPLE = 'SIMPLE'
    MODERADA = 'MODERADA'
    COMPLEJA = 'COMPLEJA'


class RiskLevel(str, Enum):
    BAJO = 'BAJO'
    MEDIO = 'MEDIO'
    ALTO = 'ALTO'


class Integrations(str, Enum):
    """Systems the prospect needs the product to integrate with."""

    CRM = 'CRM'
    SISTEMA_CITAS = 'SISTEMA_CITAS'
    ECOMMERCE = 'ECOMMERCE'
    TICKETS = 'TICKETS'
    RESERVAS = 'RESERVAS'
    ERP = 'ERP'
    WHATSAPP = 'WHATSAPP'
    BASE_DATOS = 'BASE_DATOS'


class Urgency(str, Enum):
    BAJA = 'BAJA'
    MEDIA = 'MEDIA'
    ALTA = 'ALTA'
    INMEDIATA = 'INMEDIATA'


class SuccessMetric(str, Enum):
    TIEMPO_RESPUESTA = 'TIEMPO_RESPUESTA'
    VOLUMEN_PROCESADO = 'VOLUMEN_PROCESADO'
    SATISFACCION_CLIENTE = 'SATISFACCION_CLIENTE'
    REDUCCION_CARGA = 'REDUCCION_CARGA'
    AHORRO_COSTOS = 'AHORRO_COSTOS'


class Objections(str, Enum):
    COSTO = 'COSTO'
    INTEGRACION = 'INTEGRACION'
    CONFIDENCIALIDAD = 'CONFIDENCIALIDAD'
    PERSONALIZACION = 'PERSONALIZACION'
    COMPLEJIDAD = 'COMPLEJIDAD'


class Sentiment(str, Enum):
    POSITIVO = 'POSITIVO'
    NEUTRAL = 'NEUTRAL'
    ESCEPTICO = 'ESCEPTICO'


class VolumeUnit(str, Enum):
    """Time window an interaction volume is quoted over."""

    DIARIO = 'DIARIO'
    SEMANAL = 'SEMANAL'
    MENSUAL = 'MENSUAL'


# Payload key -> vocabulary. Keys match the camelCase names the model emits.
DOMAINS: dict[str, type[Enum]] = {
    'industry': Industry,
    'businessModel': BusinessModel,
    'jtbdPrimary': JtbdPrimary,
    'painPoints': PainPoints,
    'leadSource': LeadSource,
    'processMaturity': ProcessMaturity,
    'toolingMaturity': ToolingMaturity,
    'knowledgeComplexity': KnowledgeComplexity,
    'riskLevel': RiskLevel,
    'integrations': Integrations,
    'urgency': Urgency,
    'successMetrics': SuccessMetric,
    'objections': Objections,
    'sentiment': Sentiment,
    'volumeUnit': VolumeUnit,
}

SCALAR_FIELDS: tuple[str, ...] = (
    'industry',
    'businessModel',
    'leadSource',
    'processMaturity',
    'toolingMaturity',
    'knowledgeComplexity',
    'riskLevel',
    'urgency',
    'sentiment',
)

COLLECTION_FIELDS: tuple[str, ...] = (
    'jtbdPrimary',
    'painPoints',
    'integrations',
    'successMetrics',
    'objections',
)


_LABELS: dict[Enum, str] = {
    Industry.SERVICIOS_FINANCIEROS: 'Servicios Financieros',
    Industry.RETAIL: 'Retail',
    Industry.ECOMMERCE: 'E-Commerce',
    Industry.SALUD: 'Salud',
    Industry.EDUCACION: 'Educación',
    Industry.TECNOLOGIA: 'Tecnología',
    Industry.LOGISTICA: 'Logística',
    Industry.TURISMO: 'Turismo',
    Industry.HOSPITALIDAD: 'Hospitalidad',
    Industry.CONSULTORIA: 'Consultoría',
    Industry.LEGAL: 'Legal',
    Industry.INMOBILIARIA: 'Inmobiliaria',
    Industry.ALIMENTOS: 'Alimentos',
    Industry.MODA: 'Moda',
    Industry.EVENTOS: 'Eventos',
    Industry.MARKETING: 'Marketing',
    Industry.ARQUITECTURA: 'Arquitectura',
    Industry.CONSTRUCCION: 'Construcción',
    Industry.ENERGIA: 'Energía',
    Industry.AGRICULTURA: 'Agricultura',
    Industry.ONG: 'ONG',
    Industry.OTRO: 'Otro',
    BusinessModel.B2B: 'B2B',
    BusinessModel.B2C: 'B2C',
    BusinessModel.B2B2C: 'B2B2C',
    BusinessModel.MARKETPLACE: 'Marketplace',
    JtbdPrimary.AUTOMATIZAR_ATENCION: 'Automatizar Atención',
    JtbdPrimary.REDUCIR_TIEMPOS: 'Reducir Tiempos',
    JtbdPrimary.ESCALAR_OPERACIONES: 'Escalar Operaciones',
    JtbdPrimary.MEJORAR_EXPERIENCIA: 'Mejorar Experiencia',
    JtbdPrimary.LIBERAR_EQUIPO: 'Liberar Equipo',
    JtbdPrimary.MULTIIDIOMA: 'Soporte Multiidioma',
    JtbdPrimary.DISPONIBILIDAD_24_7: 'Disponibilidad 24/7',
    PainPoints.VOLUMEN_ALTO: 'Alto Volumen',
    PainPoints.RESPUESTAS_LENTAS: 'Respuestas Lentas',
    PainPoints.FALTA_PERSONALIZACION: 'Falta de Personalización',
    PainPoints.SOBRECARGA_EQUIPO: 'Sobrecarga del Equipo',
    PainPoints.CONSULTAS_REPETITIVAS: 'Consultas Repetitivas',
    PainPoints.GESTION_MANUAL: 'Gestión Manual',
    PainPoints.PICOS_DEMANDA: 'Picos de Demanda',
    PainPoints.MULTICANAL: 'Gestión Multicanal',
    LeadSource.LINKEDIN: 'LinkedIn',
    LeadSource.GOOGLE: 'Google',
    LeadSource.CONFERENCIA: 'Conferencia',
    LeadSource.RECOMENDACION: 'Recomendación',
    LeadSource.WEBINAR: 'Webinar',
    LeadSource.PODCAST: 'Podcast',
    LeadSource.FERIA: 'Feria',
    LeadSource.ARTICULO: 'Artículo',
    LeadSource.NETWORKING: 'Networking',
    LeadSource.REDES_SOCIALES: 'Redes Sociales',
    LeadSource.DESCONOCIDO: 'Desconocido',
    ProcessMaturity.MANUAL: 'Manual',
    ProcessMaturity.PARCIALMENTE_AUTOMATIZADO: 'Parcialmente Automatizado',
    ProcessMaturity.AUTOMATIZADO: 'Automatizado',
    ToolingMaturity.SIN_HERRAMIENTAS: 'Sin Herramientas',
    ToolingMaturity.HERRAMIENTAS_BASICAS: 'Herramientas Básicas',
    ToolingMaturity.CRM_INTEGRADO: 'CRM Integrado',
    KnowledgeComplexity.SIMPLE: 'Simple',
    KnowledgeComplexity.MODERADA: 'Moderada',
    KnowledgeComplexity.COMPLEJA: 'Compleja',
    RiskLevel.BAJO: 'Bajo',
    RiskLevel.MEDIO: 'Medio',
    RiskLevel.ALTO: 'Alto',
    Integrations.CRM: 'CRM',
    Integrations.SISTEMA_CITAS: 'Sistema de Citas',
    Integrations.ECOMMERCE: 'E-Commerce',
    Integrations.TICKETS: 'Sistema de Tickets',
    Integrations.RESERVAS: 'Sistema de Reservas',
    Integrations.ERP: 'ERP',
    Integrations.WHATSAPP: 'WhatsApp',
    Integrations.BASE_DATOS: 'Base de Datos',
    Urgency.BAJA: 'Baja',
    Urgency.MEDIA: 'Media',
    Urgency.ALTA: 'Alta',
    Urgency.INMEDIATA: 'Inmediata',
    SuccessMetric.TIEMPO_RESPUESTA: 'Tiempo de Respuesta',
    SuccessMetric.VOLUMEN_PROCESADO: 'Volumen Procesado',
    SuccessMetric.SATISFACCION_CLIENTE: 'Satisfacción del Cliente',
    SuccessMetric.REDUCCION_CARGA: 'Reducción de Carga',
    SuccessMetric.AHORRO_COSTOS: 'Ahorro de Costos',
    Objections.COSTO: 'Costo',
    Objections.INTEGRACION: 'Integración',
    Objections.CONFIDENCIALIDAD: 'Confidencialidad',
    Objections.PERSONALIZACION: 'Personalización',
    Objections.COMPLEJIDAD: 'Complejidad',
    Sentiment.POSITIVO: 'Positivo',
    Sentiment.NEUTRAL: 'Neutral',
    Sentiment.ESCEPTICO: 'Escéptico',
    VolumeUnit.DIARIO: 'Diario',
    VolumeUnit.SEMANAL: 'Semanal',
    VolumeUnit.MENSUAL: 'Mensual',
}


def get_domain(name: str) -> type[Enum]:
    """
    Look up a vocabulary by payload key.

    Raises:
        KeyError: If ``name`` is not one of the 15 known domains
    """
    return DOMAINS[name]


def domain_values(domain: type[Enum]) -> list[str]:
    """All tokens of a vocabulary, in declaration order."""
    return [member.value for member in domain]


def label_for(member: Enum) -> str:
    """Human-readable Spanish label for a vocabulary member."""
    return _LABELS.get(member, member.value)
