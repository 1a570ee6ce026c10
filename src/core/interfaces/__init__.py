"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) para las fuentes de palabras, el clasificador
  y el almacenamiento clave-valor.
- El Core depende de estas abstracciones; Wikipedia/Wikidata/ficheros son
  detalles de `adapters`.
"""
