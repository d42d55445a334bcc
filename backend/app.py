from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
import os
import logging

from utils.settings import load_settings

# Load configuration
settings = load_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

from translators import WorkflowTranslator, GraphTranslationError, workflow_to_graph
from schemas.workflow import WorkflowDocument

# Initialize services
workflow_translator = WorkflowTranslator(settings=settings)

app = FastAPI(
    title="Behavior Graph Translator",
    version="1.0.0",
)

logger.info(f"CORS enabled for origins: {settings.cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

# Add validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url}: {exc}")
    return JSONResponse(status_code=422, content={"detail": f"Validation error: {exc}"})


# ============================================================================
# REQUEST MODELS
# ============================================================================

class LoadRequest(BaseModel):
    # Validated node by node in the translator
    graph: Dict[str, Any]
    startOutputs: Optional[Dict[str, Any]] = None

class GraphHeader(BaseModel):
    id: str
    name: str = ""
    type: str = "behavior"

class SaveRequest(BaseModel):
    workflow: WorkflowDocument
    graph: GraphHeader = Field(description="Identity of the graph being saved")


# ============================================================================
# TRANSLATION ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    return {"message": "Behavior Graph Translator API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}

@app.post("/api/graphs/to-workflow")
async def graph_to_workflow(request: LoadRequest):
    """Convert a stored behavior graph to the editor workflow format"""
    try:
        logger.info(f"Translating graph '{request.graph.get('id')}' for the editor")
        document = workflow_translator.translate(request.graph, start_outputs=request.startOutputs)
        return document.model_dump(by_alias=True)

    except GraphTranslationError as e:
        logger.warning(f"Graph translation rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error translating graph: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Graph translation failed: {str(e)}")

@app.post("/api/workflows/to-graph")
async def workflow_to_backend_graph(request: SaveRequest):
    """Convert an edited workflow back to the stored behavior graph format"""
    try:
        logger.info(f"Writing workflow back to graph '{request.graph.id}'")
        graph = workflow_to_graph(
            request.workflow,
            graph_id=request.graph.id,
            name=request.graph.name,
            graph_type=request.graph.type,
        )
        return graph.model_dump(exclude_none=True)

    except GraphTranslationError as e:
        logger.warning(f"Workflow save rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error writing graph: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Graph write failed: {str(e)}")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
