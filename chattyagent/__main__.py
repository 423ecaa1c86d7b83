# chattyagent/__main__.py
"""Run the API with ``python -m chattyagent``"""
import uvicorn

from chattyagent.core.config import settings


def main():
    uvicorn.run("chattyagent.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    main()
