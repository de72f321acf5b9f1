import logging
from datetime import datetime
from typing import Annotated

from fastapi import Depends, FastAPI, Path as PathParam, Query
from fastapi.responses import JSONResponse

from app.schemas.validation import PredictionRequestParam, SaveAnalysisParam
from core.config import settings
from services.adjusters import BaseAdjustmentProvider, NeutralAdjustmentProvider, get_adjustment_provider
from services.analysis_session import AnalysisSession
from services.history_store import HistoryStore, get_history_store
from services.prediction_service import PredictionEngine, ValidationError, get_prediction_engine

app = FastAPI(title=settings.PROJECT_NAME)
logger = logging.getLogger(__name__)

HistoryKey = Annotated[str, PathParam(min_length=3, max_length=201)]


@app.post("/api/predict")
async def api_predict(
    params: PredictionRequestParam,
    use_ai: Annotated[bool, Query(description="Refine the estimate with the AI adjustment")] = True,
    engine: PredictionEngine = Depends(get_prediction_engine),
    provider: BaseAdjustmentProvider = Depends(get_adjustment_provider),
):
    """
    Baseline estimate plus the AI-refined estimate for the same moment.
    """
    if not use_ai:
        provider = NeutralAdjustmentProvider()
    session = AnalysisSession(engine=engine, provider=provider)

    try:
        outcome = await session.analyze(params.to_input(), now=datetime.now(engine.tz))
    except ValidationError as exc:
        logger.info("Rejected prediction input: %s", exc)
        return JSONResponse({"detail": str(exc)}, status_code=400)

    return JSONResponse(
        {
            "baseline": outcome.baseline.model_dump(mode="json"),
            "result": outcome.result.model_dump(mode="json"),
            "adjustment": outcome.adjustment.model_dump(mode="json"),
            "adjustment_source": provider.source_name,
        }
    )


@app.get("/api/history")
def api_list_history(store: HistoryStore = Depends(get_history_store)):
    """Saved analyses, newest first."""
    return JSONResponse({"items": [entry.model_dump(mode="json") for entry in store.list()]})


@app.post("/api/history")
def api_save_history(
    params: SaveAnalysisParam,
    engine: PredictionEngine = Depends(get_prediction_engine),
    store: HistoryStore = Depends(get_history_store),
):
    """Save (or overwrite) the inputs for a university + department."""
    prediction_input = params.prediction.to_input()
    try:
        engine.validate(prediction_input)
    except ValidationError as exc:
        return JSONResponse({"detail": str(exc)}, status_code=400)

    entry = store.save(params.university, params.department, prediction_input)
    return JSONResponse(entry.model_dump(mode="json"))


@app.get("/api/history/{key}")
def api_get_history(key: HistoryKey, store: HistoryStore = Depends(get_history_store)):
    entry = store.get(key)
    if entry is None:
        return JSONResponse({"detail": "Saved analysis not found"}, status_code=404)
    return JSONResponse(entry.model_dump(mode="json"))


@app.delete("/api/history/{key}")
def api_delete_history(key: HistoryKey, store: HistoryStore = Depends(get_history_store)):
    if not store.delete(key):
        return JSONResponse({"detail": "Saved analysis not found"}, status_code=404)
    return JSONResponse({"deleted": key})


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
