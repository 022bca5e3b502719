import uvicorn
import os

if __name__ == "__main__":
    # Recarga automática só em desenvolvimento
    is_dev = os.getenv("ENV", "dev") == "dev"

    uvicorn.run(
        "ibrac.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=is_dev,
        log_level="info"
    )
