"""
Built-in Sprite Packs

- "sprites4": a file-backed base pack (the layout every derived pack copies)
- "procedural": the same layout, generated at runtime

Host applications can add more packs with PackRegistry.register or derive
procedural ones with PackRegistry.register_procedural_pack.
"""

from typing import Dict, List, Tuple

from .packs import (
    CellMap,
    GridPosition,
    PackLayout,
    PackRegistry,
    ProceduralPackOptions,
    SpritePack,
    create_procedural_pack_from_base,
)

BASE_PACK_ID = "sprites4"
PROCEDURAL_PACK_ID = "procedural"
PROCEDURAL_PACK_SEED = 1337

SPRITES4_ORDER: List[str] = [
    "residential", "commercial", "industrial", "fire_station", "hospital",
    "park", "park_large", "tennis", "police_station", "school",
    "university", "water_tower", "power_plant", "stadium", "space_program",
    "tree", "water", "subway_station", "house_medium", "mansion",
    "house_small", "shop_medium", "shop_small", "warehouse", "factory_small",
    "factory_medium", "factory_large", "airport", "city_hall", "amusement_park",
]


def _cells(layout: Dict[str, List[Tuple[int, int]]]) -> CellMap:
    return {name: [GridPosition(c, r) for c, r in positions] for name, positions in layout.items()}


def _copy_cell_map(cell_map: CellMap) -> CellMap:
    return {name: list(positions) for name, positions in cell_map.items()}


SPRITES4_DENSE = _cells({
    "apartment_high": [(0, 0), (1, 0), (2, 0)],
    "apartment_low": [(3, 0), (4, 0)],
    "office_high": [(0, 1), (1, 1)],
    "office_low": [(2, 1), (3, 1)],
    "mall": [(4, 1)],
})

SPRITES4_MODERN = _cells({
    "apartment_high": [(0, 0), (1, 0)],
    "office_high": [(2, 0), (3, 0)],
    "mall": [(4, 0)],
    "house_medium": [(0, 1), (1, 1)],
})

SPRITES4_PARKS = _cells({
    "park_medium": [(0, 0)],
    "community_garden": [(1, 0)],
    "playground_small": [(2, 0)],
    "playground_large": [(3, 0)],
    "pond_park": [(4, 0)],
    "basketball_courts": [(0, 1)],
    "soccer_field_small": [(1, 1)],
    "football_field": [(2, 1)],
    "baseball_field_small": [(3, 1)],
    "tennis_courts": [(4, 1)],
    "swimming_pool": [(0, 2)],
    "skate_park": [(1, 2)],
    "go_kart_track": [(2, 2)],
    "roller_coaster_small": [(3, 2)],
    "marina_docks_small": [(4, 2)],
    "pier_large": [(0, 3)],
    "campground": [(1, 3)],
    "mountain_trailhead": [(2, 3)],
    "amphitheater": [(3, 3)],
    "park_gate": [(4, 3)],
})

SPRITES4_FARMS = _cells({
    "barn": [(0, 0), (1, 0)],
    "silo": [(2, 0)],
    "greenhouse": [(3, 0)],
    "farmhouse": [(0, 1), (1, 1)],
    "field": [(2, 1), (3, 1)],
})

SPRITES4_SHOPS = _cells({
    "bakery": [(0, 0)],
    "bookstore": [(1, 0)],
    "cafe": [(2, 0), (3, 0)],
    "grocery": [(0, 1), (1, 1)],
    "hardware": [(2, 1)],
    "florist": [(3, 1)],
})

SPRITES4_STATIONS = _cells({
    "rail_station": [(0, 0), (1, 0)],
    "subway_station": [(2, 0)],
})


def sprites4_pack() -> SpritePack:
    """The file-backed base pack."""
    return SpritePack(
        id=BASE_PACK_ID,
        name="Sprites 4",
        cols=5,
        rows=6,
        layout=PackLayout.ROW,
        sprite_order=list(SPRITES4_ORDER),
        src="assets/sprites4/main.png",
        construction_src="assets/sprites4/construction.png",
        abandoned_src="assets/sprites4/abandoned.png",
        dense_src="assets/sprites4/dense.png",
        modern_src="assets/sprites4/modern.png",
        parks_src="assets/sprites4/parks.png",
        parks_construction_src="assets/sprites4/parks_construction.png",
        farms_src="assets/sprites4/farms.png",
        shops_src="assets/sprites4/shops.png",
        stations_src="assets/sprites4/stations.png",
        dense_variants=_copy_cell_map(SPRITES4_DENSE),
        modern_variants=_copy_cell_map(SPRITES4_MODERN),
        parks_buildings=_copy_cell_map(SPRITES4_PARKS),
        farms_variants=_copy_cell_map(SPRITES4_FARMS),
        shops_variants=_copy_cell_map(SPRITES4_SHOPS),
        stations_variants=_copy_cell_map(SPRITES4_STATIONS),
        parks_cols=5,
        parks_rows=4,
        farms_cols=4,
        farms_rows=2,
        shops_cols=4,
        shops_rows=2,
        stations_cols=3,
        stations_rows=1,
    )


def procedural_pack() -> SpritePack:
    """The built-in procedural pack (sprites4 layout, generated sheets)."""
    return create_procedural_pack_from_base(
        sprites4_pack(),
        ProceduralPackOptions(id=PROCEDURAL_PACK_ID, name="Procedural", seed=PROCEDURAL_PACK_SEED),
    )


def create_default_pack_registry() -> PackRegistry:
    """A registry holding the built-in packs."""
    return PackRegistry([sprites4_pack(), procedural_pack()])
