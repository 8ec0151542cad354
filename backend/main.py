import uvicorn
from kubedash.core.config import settings

# Serve the API with the host and port from settings (env or .env)
if __name__ == "__main__":
    uvicorn.run(
        "kubedash.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
