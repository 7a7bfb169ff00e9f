from fastapi import APIRouter

router = APIRouter()


@router.get("", summary="Health check")
async def health() -> dict[str, bool]:
    return {"ok": True}
