"""
Cliente de la API de tarifas de cajas de Wildberries.

- `schemas`: modelos pydantic de la respuesta y decodificacion por variantes
- `client`: cliente httpx async con clasificacion de errores y dataset de respaldo
"""
