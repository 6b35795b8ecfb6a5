"""
Prompt templates for the language oracle.

Every prompt pins the output shape: a single keyword, an exact option
string, or a small JSON object. Anything else is discarded by the adapter.
Templates are in Spanish because operators write in Spanish.
"""
from typing import Iterable

CLIENT_TYPE_PROMPT = """Analiza el siguiente mensaje del usuario y clasifica su intencion respecto al tipo de cliente.

Categorias posibles:
- EXISTENTE: quiere usar un cliente que ya existe en la base de datos (ej: "es uno que ya tenemos", "buscar cliente", "existente").
- MANUAL: quiere cargar un cliente nuevo o manual (ej: "es nuevo", "no lo tengo", "manual", "particular", "consumidor final").
- DESCONOCIDO: no queda claro que quiere el usuario.

Mensaje: "{message}"

Responde UNICAMENTE con una de las palabras clave: EXISTENTE, MANUAL, o DESCONOCIDO."""

YES_NO_PROMPT = """Analiza si el siguiente mensaje es una respuesta AFIRMATIVA (si, dale, ok, confirmo, etc.) o NEGATIVA (no, nop, nada, etc.).

Mensaje: "{message}"

Responde UNICAMENTE: AFIRMATIVO, NEGATIVO o DESCONOCIDO."""

OPTION_PROMPT = """El usuario dijo: "{message}"

Opciones validas: {options}

A cual opcion se refiere? Responde UNICAMENTE con el nombre EXACTO de la opcion (copia y pega), o "DESCONOCIDO" si no coincide con ninguna."""

CLIENT_NAME_PROMPT = """Del siguiente mensaje, extrae UNICAMENTE el nombre del cliente o la empresa que el usuario quiere buscar.
Quita saludos, verbos y palabras de relleno ("busca", "el cliente", "por favor").

Mensaje: "{message}"

Responde SOLO con un JSON valido con este formato:
{{"name": "Nombre del cliente"}}"""

ITEM_PROMPT = """Analiza el siguiente texto y extrae la descripcion del item y el monto TOTAL expresado en dinero.
Si hay calculos matematicos implicitos (ej: "2 unidades de 500"), calcula el total (1000).

Texto: "{message}"

Responde UNICAMENTE con un JSON valido con este formato:
{{"description": "Texto descriptivo limpio", "amount": 123.45}}"""

RENDER_PROMPT = """Sos un asistente interno de cotizaciones. Reescribi el siguiente mensaje para el operador
en un tono claro y amable, en espanol, SIN cambiar datos, numeros ni opciones, y SIN agregar informacion.

Instruccion: {instruction}

Mensaje base:
{fallback}

Responde SOLO con el mensaje final."""


def build_client_type_prompt(message: str) -> str:
    return CLIENT_TYPE_PROMPT.format(message=message)


def build_yes_no_prompt(message: str) -> str:
    return YES_NO_PROMPT.format(message=message)


def build_option_prompt(message: str, options: Iterable[str]) -> str:
    return OPTION_PROMPT.format(message=message, options=", ".join(options))


def build_client_name_prompt(message: str) -> str:
    return CLIENT_NAME_PROMPT.format(message=message)


def build_item_prompt(message: str) -> str:
    return ITEM_PROMPT.format(message=message)


def build_render_prompt(instruction: str, fallback: str) -> str:
    return RENDER_PROMPT.format(instruction=instruction, fallback=fallback)
