"""
Pytest configuration and shared fixtures.

Key fixtures:
- sample_transcript: Spanish sales meeting transcript with detector signals
- bare_transcript: Transcript with no detector signals
- model_payload: Well-formed camelCase model output for the sample transcript
- openai_api_key: OpenAI API key from environment (live tests only)
"""

import json
import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

# Load environment variables
from dotenv import load_dotenv

env_file = Path(__file__).parent.parent / '.env'
if env_file.exists():
    load_dotenv(env_file)


@pytest.fixture
def openai_api_key() -> str:
    """Get OpenAI API key from environment."""
    key = os.getenv('OPENAI_API_KEY')
    if not key:
        pytest.skip('OPENAI_API_KEY not set')
    return key


@pytest.fixture
def sample_transcript() -> str:
    """Sales call where the prospect names a lead source, a volume and integrations."""
    return """
Vendedor: Buenas tardes, gracias por el tiempo. ¿Cómo nos conocieron?
Cliente: Nos vieron en LinkedIn, un post sobre automatización nos llamó la atención.
Vendedor: Perfecto. ¿Cuántas consultas manejan hoy?
Cliente: Recibimos 200 mensajes diarios, casi todo por WhatsApp, y en temporada alta es peor.
Vendedor: ¿Qué sistemas usan?
Cliente: Tenemos HubSpot como CRM y una tienda en Shopify.
Cliente: Lo que más nos preocupa es la confidencialidad de los datos de nuestros clientes.
"""


@pytest.fixture
def bare_transcript() -> str:
    """Transcript with nothing the keyword detectors recognise."""
    return 'Hola, buenos días. Queríamos conversar un poco sobre el producto.'


@pytest.fixture
def model_payload() -> dict:
    """Well-formed model output for sample_transcript."""
    return {
        'industry': 'RETAIL',
        'businessModel': 'B2C',
        'jtbdPrimary': ['AUTOMATIZAR_ATENCION', 'ESCALAR_OPERACIONES'],
        'painPoints': ['VOLUMEN_ALTO', 'PICOS_DEMANDA'],
        'leadSource': 'LINKEDIN',
        'processMaturity': 'MANUAL',
        'toolingMaturity': 'HERRAMIENTAS_BASICAS',
        'knowledgeComplexity': 'MODERADA',
        'riskLevel': 'MEDIO',
        'integrations': ['CRM', 'WHATSAPP'],
        'urgency': 'ALTA',
        'successMetrics': ['TIEMPO_RESPUESTA'],
        'objections': ['CONFIDENCIALIDAD'],
        'sentiment': 'POSITIVO',
        'volume': {'quantity': 200, 'unit': 'DIARIO', 'isPeak': False},
    }


@pytest.fixture
def model_content(model_payload: dict) -> str:
    """model_payload as the text a chat completion would carry."""
    return json.dumps(model_payload)
