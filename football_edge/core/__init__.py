"""Core mathematics and configuration for the Football Edge analyzer.

This package contains pure building blocks:

- ``elo``         : Elo-style team rating from recent results
- ``goal_model``  : Elo difference → Poisson goal rates → market probabilities
- ``odds_math``   : decimal odds parsing, overround, implied probabilities
- ``markets``     : closed market/outcome enums and the synonym lookup table
- ``edge``        : edge, EV score and value flag per market outcome
- ``arbitrage``   : best-price selection and risk-free stake sizing
- ``model_config``: model constants in one frozen dataclass
- ``leagues``     : league key → provider league id registry
- ``data_source`` : ABC and DTOs for the football data provider
- ``exceptions``  : typed failures shared by core and services

Nothing in this package imports from ``football_edge.services``.
All modules are side-effect-free and unit-testable in isolation.
"""
