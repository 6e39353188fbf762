"""
FastAPI application serving the in-page coding assistant.
"""
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codemate.routes import router
import config


app = FastAPI(title="Codemate", version="1.0.0")

# The overlay runs inside arbitrary problem pages
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


def run():
    uvicorn.run("codemate.main:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
