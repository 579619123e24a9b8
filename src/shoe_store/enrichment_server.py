#!/usr/bin/env python3
"""
FastAPI server that describes shoes with Claude.

POST /shoes answers {"details": "..."} or {"error": "..."}. Only a body that
does not parse at all gets FastAPI's 422.
"""
import os

import anthropic
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import DEFAULT_PORT, model_from_env
from .log import get_logger, setup_logging
from .models import Shoe, ShoesRequest, ShoesResponse

logger = get_logger(__name__)

app = FastAPI(title="Shoe Details Server")

# Enable CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SYSTEM_PROMPT = """You are a knowledgeable shoe store assistant.

For every shoe the customer lists, write a short paragraph covering:
1. What kind of shoe it most likely is and who it suits
2. Notable features or materials, if the model is well known
3. Whether the listed price looks low, fair or high

Keep the whole answer under 250 words. Use plain text, no markdown headings.
If you do not recognise a shoe, say so briefly instead of inventing details.
"""


def build_prompt(shoes: list[Shoe]) -> str:
    """Render the shoe list as the user message."""
    lines = [f"- {shoe.name} ({shoe.display_price()})" for shoe in shoes]
    return "Please describe these shoes:\n" + "\n".join(lines)


def describe_shoes(shoes: list[Shoe], api_key: str, model: str) -> str:
    """Ask Claude for a description of the shoes and return the text."""
    client = anthropic.Anthropic(api_key=api_key)
    response = client.messages.create(
        model=model,
        max_tokens=1024,
        system=SYSTEM_PROMPT,
        messages=[{"role": "user", "content": build_prompt(shoes)}],
    )

    details = ""
    for block in response.content:
        if hasattr(block, "text"):
            details += block.text
    return details.strip()


@app.post("/shoes", response_model=ShoesResponse, response_model_exclude_none=True)
def shoes_details(request: ShoesRequest) -> ShoesResponse:
    """Return a description of the posted shoes."""
    if not request.shoes:
        return ShoesResponse(error="No shoes provided.")

    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        return ShoesResponse(error="ANTHROPIC_API_KEY environment variable not set")

    try:
        details = describe_shoes(request.shoes, api_key, model_from_env())
    except anthropic.APIError:
        logger.exception("Claude request failed for user %s", request.userId)
        return ShoesResponse(error="Failed to fetch shoe details.")

    logger.info("Described %d shoe(s) for user %s", len(request.shoes), request.userId)
    return ShoesResponse(details=details)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {
        "status": "ok",
        "chat_available": bool(os.environ.get("ANTHROPIC_API_KEY")),
        "model": model_from_env(),
    }


if __name__ == "__main__":
    import uvicorn

    setup_logging("INFO")
    print("👟 Starting Shoe Details Server...")
    print(f"📍 Server will run at: http://localhost:{DEFAULT_PORT}")
    print(f"❤️  Health check: http://localhost:{DEFAULT_PORT}/health")
    print()
    print("Make sure ANTHROPIC_API_KEY is set in your environment!")
    print()

    uvicorn.run(app, host="0.0.0.0", port=DEFAULT_PORT)
