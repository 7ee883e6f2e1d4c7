"""Sources of external signals with retry and daily caching."""