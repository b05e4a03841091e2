from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import logging

from mealweek.api.routes import meals, weeks
from mealweek.events.web_observers import start as start_event_observers
from mealweek.infra.factory import get_meal_repository
from mealweek.utilities.exceptions import MealPlannerError, PersistenceError

# Logging
logger = logging.getLogger("mealweek_app")

# Initialize FastAPI app
app = FastAPI(title="Weekly Meal Planner API")

# Include routers
app.include_router(meals.router)
app.include_router(weeks.router)

# Observers are subscribed at import so change events are buffered even when
# the app runs without lifespan events (e.g. under a bare TestClient).
start_event_observers()


@app.on_event("startup")
def _startup_storage():
    """Resolve the storage chain once, before the first request."""
    repo = get_meal_repository()
    logger.info("Meal storage ready (%s)", repo.backend.name)


@app.exception_handler(MealPlannerError)
async def _planner_error_handler(request: Request, exc: MealPlannerError):
    if isinstance(exc, PersistenceError):
        logger.error("%s %s failed: %s (cause: %r)", request.method, request.url.path, exc, exc.__cause__)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.get("/api/health")
def health():
    return {"status": "ok"}
