from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import StrEnum


class CardKind(StrEnum):
    product = "product"
    cofactor = "cofactor"


class YieldKind(StrEnum):
    NADH = "NADH"
    FADH2 = "FADH2"
    GTP = "GTP"


class ReferenceDataError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class EnergyYield:
    kind: YieldKind
    base_value: int


@dataclass(frozen=True, slots=True)
class CardDefinition:
    id: str
    label: str
    abbreviation: str
    kind: CardKind


@dataclass(frozen=True, slots=True)
class StageRow:
    """Catalog row for a ring stage, as authored (successor referenced by id)."""

    id: str
    label: str
    abbreviation: str
    next_id: str
    product_card: str
    cofactors: tuple[str, ...] = ()
    energy_yield: EnergyYield | None = None
    releases_co2: bool = False


@dataclass(frozen=True, slots=True)
class RingStage:
    index: int
    id: str
    label: str
    abbreviation: str
    next_index: int
    product_card: str
    cofactors: tuple[str, ...]
    energy_yield: EnergyYield | None
    releases_co2: bool

    def required_count(self, card_id: str) -> int:
        return self.cofactors.count(card_id)


@dataclass(frozen=True, slots=True)
class ReferenceData:
    """The ring + card catalog the engine plays against.

    Built once through `from_rows`, which checks that the ring is a single closed
    cycle and that every referenced card exists. Never mutated afterwards.
    """

    stages: tuple[RingStage, ...]
    cards: dict[str, CardDefinition]
    demand: dict[str, int]

    @staticmethod
    def from_rows(*, stages: list[StageRow], cards: list[CardDefinition]) -> "ReferenceData":
        by_id: dict[str, CardDefinition] = {}
        for c in cards:
            if c.id in by_id:
                raise ReferenceDataError(f"Duplicate card id: {c.id}")
            by_id[c.id] = c

        products = [c for c in cards if c.kind == CardKind.product]
        cofactors = [c for c in cards if c.kind == CardKind.cofactor]
        if len(products) != RING_SIZE:
            raise ReferenceDataError(f"Expected {RING_SIZE} product cards, got {len(products)}")
        if len(cofactors) != COFACTOR_COUNT:
            raise ReferenceDataError(f"Expected {COFACTOR_COUNT} cofactor cards, got {len(cofactors)}")
        if len(stages) != RING_SIZE:
            raise ReferenceDataError(f"Expected {RING_SIZE} stages, got {len(stages)}")

        index_of = {row.id: i for i, row in enumerate(stages)}
        if len(index_of) != len(stages):
            raise ReferenceDataError("Duplicate stage id")

        built: list[RingStage] = []
        for i, row in enumerate(stages):
            if row.next_id not in index_of:
                raise ReferenceDataError(f"Stage {row.id} points at unknown stage {row.next_id}")
            product = by_id.get(row.product_card)
            if product is None or product.kind != CardKind.product:
                raise ReferenceDataError(f"Stage {row.id} requires unknown product {row.product_card}")
            for cf in row.cofactors:
                card = by_id.get(cf)
                if card is None or card.kind != CardKind.cofactor:
                    raise ReferenceDataError(f"Stage {row.id} requires unknown cofactor {cf}")
            built.append(
                RingStage(
                    index=i,
                    id=row.id,
                    label=row.label,
                    abbreviation=row.abbreviation,
                    next_index=index_of[row.next_id],
                    product_card=row.product_card,
                    cofactors=tuple(row.cofactors),
                    energy_yield=row.energy_yield,
                    releases_co2=row.releases_co2,
                )
            )

        # Walking successors from 0 must visit every stage exactly once.
        seen: list[int] = []
        idx = 0
        for _ in range(RING_SIZE):
            seen.append(idx)
            idx = built[idx].next_index
        if idx != 0 or sorted(seen) != list(range(RING_SIZE)):
            raise ReferenceDataError("Stages do not form a single closed cycle")

        # Each stage's product is produced by its predecessor.
        for stage in built:
            if built[stage.next_index].id != stage.product_card:
                raise ReferenceDataError(f"Stage {stage.id} product {stage.product_card} is not its successor")

        demand: Counter[str] = Counter()
        for stage in built:
            demand[stage.product_card] += 1
            demand.update(stage.cofactors)

        return ReferenceData(stages=tuple(built), cards=by_id, demand=dict(demand))

    def card(self, card_id: str) -> CardDefinition:
        return self.cards[card_id]

    def stage(self, index: int) -> RingStage:
        return self.stages[index]

    def demand_for(self, card_id: str) -> int:
        return max(self.demand.get(card_id, 0), 1)

    def ids_of_kind(self, kind: CardKind) -> list[str]:
        return [c.id for c in self.cards.values() if c.kind == kind]

    @property
    def cofactor_ids(self) -> list[str]:
        return self.ids_of_kind(CardKind.cofactor)


RING_SIZE = 8
COFACTOR_COUNT = 5


TCA_STAGES: list[StageRow] = [
    StageRow("oxaloacetate", "Oxaloacetate", "OAA", "citrate", "citrate", ("acetyl-coa",)),
    StageRow("citrate", "Citrate", "CIT", "isocitrate", "isocitrate"),
    StageRow(
        "isocitrate",
        "Isocitrate",
        "ICIT",
        "alpha-ketoglutarate",
        "alpha-ketoglutarate",
        ("nad+",),
        EnergyYield(YieldKind.NADH, 10),
        releases_co2=True,
    ),
    StageRow(
        "alpha-ketoglutarate",
        "α-Ketoglutarate",
        "AKG",
        "succinyl-coa",
        "succinyl-coa",
        ("nad+", "coa"),
        EnergyYield(YieldKind.NADH, 10),
        releases_co2=True,
    ),
    StageRow("succinyl-coa", "Succinyl-CoA", "SCoA", "succinate", "succinate", ("gdp",), EnergyYield(YieldKind.GTP, 5)),
    StageRow("succinate", "Succinate", "SUC", "fumarate", "fumarate", ("fad",), EnergyYield(YieldKind.FADH2, 7)),
    StageRow("fumarate", "Fumarate", "FUM", "malate", "malate"),
    StageRow("malate", "Malate", "MAL", "oxaloacetate", "oxaloacetate", ("nad+",), EnergyYield(YieldKind.NADH, 10)),
]

# Order matters: the deck builder walks cofactors in this order.
TCA_CARDS: list[CardDefinition] = [
    CardDefinition("citrate", "Citrate", "CIT", CardKind.product),
    CardDefinition("isocitrate", "Isocitrate", "ICIT", CardKind.product),
    CardDefinition("alpha-ketoglutarate", "α-Ketoglutarate", "AKG", CardKind.product),
    CardDefinition("succinyl-coa", "Succinyl-CoA", "SCoA", CardKind.product),
    CardDefinition("succinate", "Succinate", "SUC", CardKind.product),
    CardDefinition("fumarate", "Fumarate", "FUM", CardKind.product),
    CardDefinition("malate", "Malate", "MAL", CardKind.product),
    CardDefinition("oxaloacetate", "Oxaloacetate", "OAA", CardKind.product),
    CardDefinition("nad+", "NAD⁺", "NAD⁺", CardKind.cofactor),
    CardDefinition("fad", "FAD", "FAD", CardKind.cofactor),
    CardDefinition("coa", "CoA", "CoA", CardKind.cofactor),
    CardDefinition("gdp", "GDP", "GDP", CardKind.cofactor),
    CardDefinition("acetyl-coa", "Acetyl-CoA", "AcCoA", CardKind.cofactor),
]


def load_reference_data() -> ReferenceData:
    return ReferenceData.from_rows(stages=TCA_STAGES, cards=TCA_CARDS)
