from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from intentbot.config import Settings
from intentbot.errors import LoadError
from intentbot.loader import load_knowledge_base
from intentbot.pipeline import IntentBot
from intentbot.querylog import QueryLogSink

EMPTY_QUERY_MESSAGE = 'Query parameter "q" must not be empty.'

INDEX_PAGE = """
<html>
    <head><title>Intent Chatbot</title></head>
    <body style="font-family: sans-serif; text-align: center; padding-top: 50px;">
        <h1>Intent Chatbot</h1>
        <p>The server is running and connected to the query log database.</p>
        <p>Example: <code>/chat?q=hello</code></p>
    </body>
</html>
"""


def create_app(bot: IntentBot, sink: Optional[QueryLogSink] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if sink is not None:
            await sink.close()

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return INDEX_PAGE

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "patterns": len(bot.kb.patterns),
            "intents": bot.kb.active_intent_count,
        }

    @app.get("/chat")
    async def chat(q: Optional[str] = None) -> JSONResponse:
        query = q or ""
        if not query.strip():
            return JSONResponse(status_code=400, content={"error": True, "message": EMPTY_QUERY_MESSAGE})

        reply = bot.respond(query)
        # an unmatched query is reported as 404 carrying the fallback reply
        status_code = 200 if reply.matched else 404
        return JSONResponse(status_code=status_code, content=reply.to_dict())

    return app


async def startup(settings: Settings) -> Tuple[IntentBot, QueryLogSink]:
    """Connect the log sink, then load the knowledge base. Both steps are fatal on failure."""
    sink = QueryLogSink(settings.database_url)
    logger.info("Connecting to query log database...")
    await sink.connect()
    try:
        kb = load_knowledge_base(settings.knowledge_base_path)
    except LoadError:
        await sink.close()
        raise
    return IntentBot(kb, sink=sink), sink


async def serve(settings: Settings) -> None:
    try:
        bot, sink = await startup(settings)
    except LoadError as exc:
        logger.error(f"FATAL: failed to load knowledge base: {exc}")
        raise SystemExit(1) from exc
    except (SQLAlchemyError, OSError, ImportError) as exc:
        logger.error(f"FATAL: failed to connect to query log database: {exc}")
        raise SystemExit(1) from exc

    config = uvicorn.Config(
        create_app(bot, sink),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    logger.info(f"Chatbot server running at http://{settings.host}:{settings.port}")
    await uvicorn.Server(config).serve()


def run(settings: Settings) -> None:
    asyncio.run(serve(settings))
