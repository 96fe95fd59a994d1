from fastapi import APIRouter, Depends

from pinyin_quiz.core.config import Settings
from pinyin_quiz.core.deps import get_settings_dep, get_store
from pinyin_quiz.db.database import Store
from pinyin_quiz.db.vocabulary import vocabulary_size

router = APIRouter(tags=["system"])


@router.get("/health")
def health(
    s: Settings = Depends(get_settings_dep),
    store: Store = Depends(get_store),
):
    return {"status": "ok", "version": s.APP_VERSION, "words": vocabulary_size(store)}


@router.get("/version")
def version(s: Settings = Depends(get_settings_dep)):
    return {"name": s.APP_NAME, "version": s.APP_VERSION, "env": s.APP_ENV}
