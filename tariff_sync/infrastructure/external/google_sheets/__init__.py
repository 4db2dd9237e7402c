"""
Replica de la ventana reciente de tarifas en Google Sheets.

Entrega best-effort: cada hoja destino es independiente y una falla no
detiene al resto. No hay reintento entre corridas; la siguiente corrida
horaria vuelve a escribir la tabla completa.
"""
