# scripts/seed_presets.py
import asyncio
import sys
import os
import json
from pathlib import Path

# Добавляем корневую директорию в путь для импорта
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from core.config import settings
from services.proposal_service import ProposalService
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PRESET_FIELDS = {"title", "description", "category", "image_url", "images", "price", "location", "url"}


def load_presets_from_json(json_path: str = "data/presets.json") -> list:
    """Загрузить пресеты из JSON файла"""
    file_path = Path(json_path)
    if not file_path.exists():
        logger.error(f"❌ Файл {json_path} не найден!")
        return []

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"❌ Ошибка парсинга JSON: {e}")
        return []

    presets = []
    for item in data.get('presets', []):
        if not item.get('title') or not item.get('category'):
            logger.warning(f"⚠️ Пропущен пресет без title/category: {item}")
            continue
        presets.append({k: v for k, v in item.items() if k in PRESET_FIELDS})

    logger.info(f"✅ Загружено {len(presets)} пресетов из {json_path}")
    return presets


async def seed_presets(json_path: str = "data/presets.json") -> int:
    presets = load_presets_from_json(json_path)
    if not presets:
        return 0

    engine = create_async_engine(settings.DATABASE_URL)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with session_factory() as session:
            return await ProposalService(session).seed_presets(presets)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else "data/presets.json"
    added = asyncio.run(seed_presets(path))
    logger.info(f"🌱 Добавлено пресетов: {added}")
