"""
Inventory Server - Rate Limiting
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

# Limite por IP para as funcoes privilegiadas
FUNCTION_RATE_LIMIT = "60/minute"

limiter = Limiter(key_func=get_remote_address)
