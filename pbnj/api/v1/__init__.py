"""API v1 router and endpoint organization."""

from fastapi import APIRouter

from pbnj.api.v1.endpoints import articles, pbn

router = APIRouter(tags=["v1"])

router.include_router(articles.router, prefix="/articles", tags=["Articles"])
router.include_router(pbn.router, prefix="/pbn", tags=["PBN"])
