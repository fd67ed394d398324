"""Built-in ingredient classifications used by the analysis agent."""

import re
from dataclasses import dataclass, field
from enum import Enum


class HalalStatus(str, Enum):
    HALAL = "HALAL"
    HARAM = "HARAM"
    MASHBOOH = "MASHBOOH"  # doubtful, source must be verified


@dataclass(frozen=True)
class Classification:
    name: str
    status: HalalStatus
    confidence: float  # 0-100
    reasoning: str
    references: tuple[str, ...] = ()
    alternatives: tuple[str, ...] = ()
    requires_verification: bool = False
    aliases: tuple[str, ...] = field(default=(), compare=False)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "references": list(self.references),
            "alternatives": list(self.alternatives),
            "requires_verification": self.requires_verification,
        }


_H, _X, _M = HalalStatus.HALAL, HalalStatus.HARAM, HalalStatus.MASHBOOH

_ENTRIES = (
    Classification("Pork Gelatin", _X, 100, "Derived from swine", ("Q2:173", "Q5:3"),
                   ("agar", "pectin", "fish gelatin"), aliases=("pork gelatine",)),
    Classification("Pork", _X, 100, "Swine flesh is explicitly prohibited", ("Q2:173", "Q5:3", "Q6:145"),
                   aliases=("bacon", "ham", "pork fat")),
    Classification("Lard", _X, 100, "Rendered pig fat", ("Q2:173",), ("vegetable shortening",)),
    Classification("Ethanol", _X, 95, "Intoxicant used as an ingredient", ("Q5:90",),
                   aliases=("alcohol", "ethyl alcohol", "wine", "beer", "rum")),
    Classification("Blood", _X, 100, "Flowing blood is prohibited", ("Q6:145",), aliases=("blood plasma",)),
    Classification("Gelatin", _M, 40, "Animal source unknown", ("GSO 2055-1",),
                   ("agar", "pectin"), True, aliases=("gelatine",)),
    Classification("E471 (Mono- and Diglycerides)", _M, 50,
                   "May be produced from animal fats", ("OIC/SMIIC 1:2019",),
                   requires_verification=True,
                   aliases=("e471", "mono- and diglycerides", "mono and diglycerides")),
    Classification("E120 (Cochineal)", _M, 50, "Insect-derived colouring, schools differ",
                   ("Scholarly differences",), ("beetroot red",), True,
                   aliases=("e120", "cochineal", "carmine", "carminic acid")),
    Classification("Shellac", _M, 60, "Insect secretion, schools differ", (), (), True,
                   aliases=("e904",)),
    Classification("Lecithin", _M, 70, "Usually soy, occasionally egg or animal", (), (), True,
                   aliases=("e322", "soy lecithin")),
    Classification("Natural Flavors", _M, 50, "May contain alcohol carriers or animal extracts",
                   (), (), True, aliases=("natural flavour", "natural flavours", "natural flavor", "flavouring")),
    Classification("Vanilla Extract", _M, 60, "Commonly extracted in ethanol", ("Q5:90",),
                   ("vanillin", "vanilla powder"), True),
    Classification("Rennet", _M, 50, "Enzyme source may be animal", (), ("microbial rennet",), True),
    Classification("Whey Protein", _H, 80, "Dairy derived; check rennet source", (),
                   aliases=("whey", "whey powder")),
    Classification("Olive Oil", _H, 100, "Plant origin"),
    Classification("Coconut Oil", _H, 100, "Plant origin"),
    Classification("Sunflower Oil", _H, 100, "Plant origin", aliases=("vegetable oil", "palm oil", "rapeseed oil")),
    Classification("Sea Salt", _H, 100, "Mineral", aliases=("salt", "sodium chloride")),
    Classification("Water", _H, 100, "Pure by default", ("Q25:48",)),
    Classification("Cane Sugar", _H, 100, "Plant origin", aliases=("sugar", "glucose syrup", "dextrose")),
    Classification("Wheat Flour", _H, 100, "Plant origin", aliases=("flour", "wheat", "rice flour")),
    Classification("Ascorbic Acid (Vitamin C)", _H, 100, "Synthetic or plant origin",
                   aliases=("ascorbic acid", "vitamin c", "e300")),
    Classification("Citric Acid", _H, 100, "Fermentation product", aliases=("e330",)),
    Classification("Potassium Sorbate", _H, 100, "Synthetic preservative", aliases=("e202",)),
    Classification("Monosodium Glutamate (MSG)", _H, 95, "Bacterial fermentation",
                   aliases=("msg", "monosodium glutamate", "e621")),
    Classification("Xanthan Gum", _H, 100, "Bacterial fermentation", aliases=("e415",)),
    Classification("Guar Gum", _H, 100, "Plant origin", aliases=("e412",)),
    Classification("Carrageenan", _H, 100, "Seaweed origin", aliases=("e407",)),
    Classification("Pectin", _H, 100, "Fruit origin", aliases=("e440",)),
    Classification("Agar", _H, 100, "Seaweed origin", aliases=("agar agar", "e406")),
    Classification("Calcium Carbonate", _H, 100, "Mineral", aliases=("e170",)),
    Classification("Polydextrose", _H, 95, "Synthesised from glucose and sorbitol", aliases=("e1200",)),
    Classification("Cocoa", _H, 100, "Plant origin", aliases=("cocoa butter", "cocoa mass", "cocoa powder")),
    Classification("Milk", _H, 100, "Dairy", aliases=("skimmed milk powder", "milk powder", "cream")),
    Classification("Eggs", _H, 100, "Permissible animal product", aliases=("egg", "egg yolk")),
)


_E_NUMBER = re.compile(r"\be\s?\d{3,4}[a-z]?\b")


def normalize(name: str) -> str:
    """Lower-case, drop bracketed qualifiers and percentages."""
    name = re.sub(r"\(.*?\)|\[.*?\]", " ", name.lower())
    name = re.sub(r"\d+(\.\d+)?\s*%", " ", name)
    return re.sub(r"\s+", " ", name).strip(" .;:*")


class KnowledgeBase:
    """Lookup of ingredient classifications by name or alias."""

    def __init__(self, entries: tuple[Classification, ...] = _ENTRIES):
        self._index: dict[str, Classification] = {}
        for entry in entries:
            self._index[normalize(entry.name)] = entry
            for alias in entry.aliases:
                self._index[normalize(alias)] = entry

    def __len__(self) -> int:
        return len(self._index)

    def lookup(self, ingredient: str) -> Classification | None:
        key = normalize(ingredient)
        if not key:
            return None
        if key in self._index:
            return self._index[key]
        # E-number written inside brackets, e.g. "emulsifier (E471)"
        for code in _E_NUMBER.findall(ingredient.lower()):
            found = self._index.get(code.replace(" ", ""))
            if found:
                return found
        return None
