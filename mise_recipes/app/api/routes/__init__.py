from fastapi import APIRouter

from mise_recipes.app.api.routes import ai, recipes

api_router = APIRouter()
api_router.include_router(recipes.router)
api_router.include_router(ai.router)
