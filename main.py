# main.py

from manuorder.core.config import settings
from manuorder.main import app

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, log_level="info")
