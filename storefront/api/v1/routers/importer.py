from fastapi import APIRouter, UploadFile, File, Query, HTTPException, Depends
from typing import Optional, List, Dict, Any, AsyncIterator
import json
import uuid
import logging
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import UpdateOne
from pymongo.errors import ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure

from storefront.api.deps import mongo_db
from storefront.core.security import require_admin
from storefront.db.mongo import ensure_indexes
from storefront.domain.models.product import Product, ProductIn
from storefront.domain.services.catalog_svc import load_fallback_products

router = APIRouter(prefix="/import", tags=["import"], dependencies=[Depends(require_admin)])

DEFAULT_BATCH_SIZE = 500          # default batch size for bulk writes
MAX_JSON_ARRAY_MB = 5             # max allowed size for JSON array uploads (in MB)
CHUNK_SIZE = 64 * 1024            # 64KB
COLLECTION = "products"

MONGO_DOWN = (ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure)

# Exports of the original catalog use camelCase and Mongo-style ids
_KEY_ALIASES = {
    "id": "product_id",
    "_id": "product_id",
    "originalPrice": "original_price",
    "priceAED": "price_aed",
    "dateAdded": "date_added",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

logger = logging.getLogger(__name__)


def _is_probably_jsonl(first_bytes: bytes) -> bool:
    # JSON array starts with '[' (maybe after whitespace), JSONL does not
    return not first_bytes.lstrip().startswith(b"[")


def normalize_product_doc(raw: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """
    Validate one imported record and shape it as a `products` document.
    Raises ValueError (pydantic ValidationError included) on bad records.
    """
    if not isinstance(raw, dict):
        raise ValueError("record is not an object")
    doc = {_KEY_ALIASES.get(k, k): v for k, v in raw.items()}
    product_id = str(doc.pop("product_id", "") or "") or uuid.uuid4().hex
    payload = ProductIn.model_validate({k: v for k, v in doc.items() if k in ProductIn.model_fields})
    fields = payload.model_dump()
    fields["date_added"] = fields.get("date_added") or now
    product = Product(product_id=product_id, created_at=now, updated_at=now, **fields)
    return product.model_dump()


async def _iter_bytes(upload: UploadFile, chunk_size: int = CHUNK_SIZE):
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        yield chunk


async def _stream_jsonl_docs(upload: UploadFile) -> AsyncIterator[Any]:
    # Re-buffer chunks into lines and yield parsed JSON objects
    await upload.seek(0)
    buffer = b""
    async for chunk in _iter_bytes(upload):
        buffer += chunk
        while True:
            nl = buffer.find(b"\n")
            if nl == -1:
                break
            line = buffer[:nl].strip()
            buffer = buffer[nl + 1 :]
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise HTTPException(status_code=400, detail=f"Invalid JSONL line: {e}")
    tail = buffer.strip()
    if tail:
        try:
            yield json.loads(tail)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail=f"Invalid JSONL tail: {e}")


async def _read_json_array(upload: UploadFile) -> List[Any]:
    size = int(upload.size) if getattr(upload, "size", None) else 0
    limit = MAX_JSON_ARRAY_MB * 1024 * 1024
    if size > limit:
        raise HTTPException(status_code=413, detail=f"JSON array too large (> {MAX_JSON_ARRAY_MB} MB). Prefer JSONL.")
    content = await upload.read()
    if len(content) > limit:
        raise HTTPException(status_code=413, detail=f"JSON array too large (> {MAX_JSON_ARRAY_MB} MB). Prefer JSONL.")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON array: {e}")
    if not isinstance(data, list):
        raise HTTPException(status_code=400, detail="Top-level JSON must be an array or send JSONL.")
    return data


async def _bulk_upsert_products(
    db: AsyncIOMotorDatabase,
    docs_iter,
    batch_size: int,
    ordered: bool,
) -> dict:
    """Validate then upsert by product_id. Invalid records are skipped and reported."""
    col = db[COLLECTION]
    now = datetime.now(timezone.utc)
    stats = {"upserted_count": 0, "modified_count": 0, "skipped": 0, "errors": []}
    ops: List[UpdateOne] = []

    async def flush():
        try:
            res = await col.bulk_write(ops, ordered=ordered)
        except MONGO_DOWN as e:
            logger.error("[import] bulk_write batch failed: %s", e)
            raise HTTPException(status_code=503, detail="MongoDB unavailable (connection/TLS).")
        stats["upserted_count"] += res.upserted_count or 0
        stats["modified_count"] += res.modified_count or 0
        ops.clear()

    index = 0
    async for raw in docs_iter:
        index += 1
        try:
            doc = normalize_product_doc(raw, now)
        except (ValidationError, ValueError) as e:
            stats["skipped"] += 1
            if len(stats["errors"]) < 20:
                stats["errors"].append(f"record {index}: {str(e).splitlines()[0]}")
            continue
        # keep the original creation time on re-import
        created_at = doc.pop("created_at")
        ops.append(UpdateOne(
            {"product_id": doc["product_id"]},
            {"$set": doc, "$setOnInsert": {"created_at": created_at}},
            upsert=True,
        ))
        if len(ops) >= batch_size:
            await flush()
    if ops:
        await flush()

    logger.info(
        "[import] done upserted=%s modified=%s skipped=%s",
        stats["upserted_count"], stats["modified_count"], stats["skipped"],
    )
    return stats


async def _prepare(db: Optional[AsyncIOMotorDatabase], replace: bool) -> AsyncIOMotorDatabase:
    if db is None:
        raise HTTPException(status_code=503, detail="MongoDB not initialized.")
    # Fail fast if Mongo is unreachable
    try:
        await db.command({"ping": 1})
    except MONGO_DOWN as e:
        logger.error("[import] MongoDB ping failed: %s", e)
        raise HTTPException(status_code=503, detail="MongoDB unavailable (connection/TLS).")
    if replace:
        logger.warning("[import] dropping collection %s before import", COLLECTION)
        await db.drop_collection(COLLECTION)
        await ensure_indexes(db)
    return db


@router.post("/products")
async def import_products(
    file: UploadFile = File(..., description="JSON array (.json) or JSONL/NDJSON (.jsonl/.ndjson)."),
    replace: bool = Query(False, description="Drop the catalog before import."),
    ordered: bool = Query(False, description="Mongo ordered writes. False is faster and continues on errors."),
    batch_size: int = Query(DEFAULT_BATCH_SIZE, ge=1, le=10000, description="Batch size for bulk writes."),
    db = Depends(mongo_db),
):
    """Bulk upsert of catalog records keyed by product_id (generated when absent)."""
    database = await _prepare(db, replace)

    head = await file.read(512)
    await file.seek(0)

    if _is_probably_jsonl(head):
        result = await _bulk_upsert_products(database, _stream_jsonl_docs(file), batch_size, ordered)
        return {"collection": COLLECTION, "format": "jsonl", **result}

    data = await _read_json_array(file)

    async def _array_iter():
        for doc in data:
            yield doc

    result = await _bulk_upsert_products(database, _array_iter(), batch_size, ordered)
    return {"collection": COLLECTION, "format": "json_array", **result}


@router.post("/products/seed")
async def seed_products(
    replace: bool = Query(True, description="Drop the catalog before seeding."),
    db = Depends(mongo_db),
):
    """Load the bundled watch catalog into MongoDB."""
    database = await _prepare(db, replace)

    async def _seed_iter():
        for p in load_fallback_products():
            yield p.model_dump()

    result = await _bulk_upsert_products(database, _seed_iter(), DEFAULT_BATCH_SIZE, False)
    return {"collection": COLLECTION, "format": "seed", **result}
