"""
Library Desk: API de gestão de biblioteca (acervo, alunos, reservas e
empréstimos).
"""

__version__ = "0.1.0"
