from typing import List

from fastapi import APIRouter, Depends, status

from errors import NotFoundError
from models import Table, TableResponse, TableUpdate
from storage import ReservationStore, get_store, table_fields

table_router = APIRouter(
    tags=["Table"]
)


def _existing_table(store: ReservationStore, id: int):
    table = store.get_table(id)
    if not table:
        raise NotFoundError("Table not found")
    return table


@table_router.get("/restaurants/{restaurant_id}/tables", response_model=List[TableResponse], tags=["Table"])
def get_tables(restaurant_id: int, store: ReservationStore = Depends(get_store)):
    """
    Retrieves the table inventory of a restaurant.

    Args:
        restaurant_id (int): The restaurant whose tables are listed.

    Returns:
        list: Tables ordered by ID.
    """
    if not store.get_restaurant(restaurant_id):
        raise NotFoundError("Restaurant not found")
    return store.list_tables(restaurant_id)


@table_router.post("/restaurants/{restaurant_id}/tables", status_code=status.HTTP_201_CREATED, tags=["Table"])
def create_table(restaurant_id: int, table: Table, store: ReservationStore = Depends(get_store)):
    if not store.get_restaurant(restaurant_id):
        raise NotFoundError("Restaurant not found")
    db_table = store.insert_table(restaurant_id, table.table_number, table.capacity)
    return {"success": True, "table": table_fields(db_table)}


@table_router.get("/tables/{id}", response_model=TableResponse, tags=["Table"])
def get_table(id: int, store: ReservationStore = Depends(get_store)):
    return _existing_table(store, id)


@table_router.put("/tables/{id}", tags=["Table"])
def update_table(id: int, updated_table: TableUpdate, store: ReservationStore = Depends(get_store)):
    db_table = _existing_table(store, id)
    changes = {k: v for k, v in updated_table.model_dump(exclude_unset=True).items() if v is not None}
    db_table = store.update_table(db_table, changes)
    return {"success": True, "table": table_fields(db_table)}


@table_router.delete("/tables/{id}", tags=["Table"])
def delete_table(id: int, store: ReservationStore = Depends(get_store)):
    store.delete_table(_existing_table(store, id))
    return {"success": True}
