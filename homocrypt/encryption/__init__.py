"""Goldwasser-Micali and Paillier cryptosystems."""
