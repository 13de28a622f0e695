"""contacts/ -- Address-book (rubrica) persistence for Rubrica.

Layer rule: contacts/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or auth/.
"""
