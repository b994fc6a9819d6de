"""
Pattern registries for document classification and provider detection.

A registry maps a tag (a DocumentType or a RegistryProvider) to an ordered
list of weighted indicators. An indicator matches when every one of its
regex patterns is found in the text, which covers plain phrases as well as
structural co-occurrence cues such as an opening/closing balance pair.

Registries are immutable values handed to the classifier and detector;
``extended`` returns a new registry instead of changing the old one.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Generic, Iterable, List, Mapping, Pattern, Sequence, Tuple, TypeVar

from taxdocs.exceptions import PatternRegistryError
from taxdocs.models import DocumentType, RegistryProvider

K = TypeVar("K")


class IndicatorKind(str, Enum):
    """How an indicator recognises its evidence."""
    KEYWORD = "keyword"
    PATTERN = "pattern"
    STRUCTURE = "structure"


@dataclass(frozen=True)
class Indicator:
    """A weighted piece of evidence for one registry tag."""
    label: str
    patterns: Tuple[Pattern[str], ...]
    weight: float = 1.0
    kind: IndicatorKind = IndicatorKind.KEYWORD

    def matches(self, text: str) -> bool:
        return all(p.search(text) for p in self.patterns)


@dataclass(frozen=True)
class RegistryMatch:
    """Indicators of one tag that matched a text, with their summed weight."""
    score: float
    matched: Tuple[Indicator, ...] = ()

    @property
    def labels(self) -> List[str]:
        return [indicator.label for indicator in self.matched]


def _phrase_regex(phrase: str) -> Pattern[str]:
    # Any run of whitespace between words, no word characters either side
    escaped = r"\s+".join(re.escape(word) for word in phrase.split())
    return re.compile(rf"(?<!\w){escaped}(?!\w)", re.IGNORECASE)


def keyword(phrase: str, weight: float = 1.0) -> Indicator:
    """Indicator for a literal phrase, case-insensitive, whole words."""
    return Indicator(label=phrase.lower(), patterns=(_phrase_regex(phrase),), weight=weight)


def pattern(label: str, regex: str, weight: float = 1.0) -> Indicator:
    """Indicator for a single case-insensitive regular expression."""
    return Indicator(
        label=label,
        patterns=(re.compile(regex, re.IGNORECASE),),
        weight=weight,
        kind=IndicatorKind.PATTERN,
    )


def structure(label: str, *regexes: str, weight: float = 1.0) -> Indicator:
    """Indicator that needs every regex to match somewhere in the text."""
    if len(regexes) < 2:
        raise PatternRegistryError(
            "Structural indicators need at least two patterns",
            details={"label": label},
        )
    return Indicator(
        label=label,
        patterns=tuple(re.compile(r, re.IGNORECASE) for r in regexes),
        weight=weight,
        kind=IndicatorKind.STRUCTURE,
    )


class PatternRegistry(Generic[K]):
    """
    Ordered mapping of tags to weighted indicators.

    Tag order is significant: callers use it to break ties.
    """

    def __init__(self, entries: Mapping[K, Sequence[Indicator]]):
        self._entries: Dict[K, Tuple[Indicator, ...]] = {
            tag: tuple(indicators) for tag, indicators in entries.items()
        }

    def __contains__(self, tag: object) -> bool:
        return tag in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def tags(self) -> List[K]:
        return list(self._entries)

    def indicators(self, tag: K) -> Tuple[Indicator, ...]:
        if tag not in self._entries:
            raise PatternRegistryError(f"Unknown registry tag: {tag}", details={"tag": str(tag)})
        return self._entries[tag]

    def score(self, text: str) -> Dict[K, RegistryMatch]:
        """
        Score text against every tag.

        Each distinct indicator contributes its weight once, however often
        its patterns occur.

        Args:
            text: Text to score.

        Returns:
            Mapping of tag to RegistryMatch, in registry order.
        """
        results: Dict[K, RegistryMatch] = {}
        for tag, indicators in self._entries.items():
            matched = tuple(ind for ind in indicators if ind.matches(text))
            results[tag] = RegistryMatch(
                score=sum(ind.weight for ind in matched),
                matched=matched,
            )
        return results

    def extended(self, tag: K, indicator: Indicator) -> "PatternRegistry[K]":
        """Return a copy of this registry with one more indicator for ``tag``."""
        if tag not in self._entries:
            raise PatternRegistryError(f"Unknown registry tag: {tag}", details={"tag": str(tag)})
        entries = dict(self._entries)
        entries[tag] = entries[tag] + (indicator,)
        return PatternRegistry(entries)


# =============================================================================
# Document types
# =============================================================================

def default_document_registry() -> PatternRegistry[DocumentType]:
    """Build the default indicator registry for document classification."""
    return PatternRegistry({
        DocumentType.DIVIDEND_STATEMENT: [
            keyword("dividend statement", 3.0),
            keyword("dividend advice", 3.0),
            keyword("distribution statement", 3.0),
            keyword("share registry", 3.0),
            pattern("franking credits", r"\bfranking\s+credits?\b", 3.0),
            structure(
                "franking with shareholding",
                r"\bfrank(?:ed|ing)\b",
                r"\b(?:shares|units|holding)\b",
                weight=3.0,
            ),
            keyword("franked", 1.5),
            keyword("unfranked", 1.5),
            keyword("record date", 1.5),
            pattern("dividend reinvestment plan", r"\bdividend\s+reinvestment\s+plan\b|\bDRP\b", 1.5),
            pattern("ex-dividend", r"\bex[\s-]dividend\b", 1.5),
            pattern("dividend per share", r"\b(?:dividend|distribution)\s+per\s+(?:share|unit)\b", 1.5),
            pattern("shares held", r"\b(?:shares|units)\s+held\b", 1.5),
            pattern("holder number", r"\b(?:SRN|HIN)\b", 1.5),
            keyword("payment date", 1.0),
            keyword("dividend", 1.0),
            keyword("shareholder", 1.0),
            keyword("asx", 1.0),
            pattern("registry name", r"\b(?:computershare|link\s+market\s+services|boardroom)\b", 1.0),
        ],
        DocumentType.BANK_STATEMENT: [
            keyword("bank statement", 3.0),
            keyword("account statement", 3.0),
            keyword("opening balance", 3.0),
            keyword("closing balance", 3.0),
            pattern("bsb", r"\bBSB\b", 3.0),
            structure(
                "opening and closing balance",
                r"\bopening\s+balance\b",
                r"\bclosing\s+balance\b",
                weight=3.0,
            ),
            pattern("balance forward", r"\bbalance\s+(?:brought|carried)\s+forward\b", 1.5),
            keyword("direct debit", 1.5),
            keyword("account number", 1.5),
            pattern("withdrawal", r"\bwithdrawals?\b", 1.5),
            pattern("deposit", r"\bdeposits?\b", 1.5),
            pattern("transaction listing", r"\btransaction\s+(?:details|history|list(?:ing)?)\b", 1.5),
            keyword("direct credit", 1.0),
            pattern(
                "bank name",
                r"\b(?:commonwealth\s+bank|commbank|westpac|anz|nab|ing|bendigo\s+bank|macquarie\s+bank)\b",
                1.0,
            ),
            keyword("debit", 0.5),
            keyword("credit", 0.5),
        ],
        DocumentType.INVOICE: [
            pattern("invoice number", r"\binvoice\s*(?:no\b\.?|number\b|#)", 3.0),
            keyword("payment terms", 3.0),
            keyword("bill to", 3.0),
            pattern("amount due", r"\b(?:balance|amount|total)\s+due\b", 3.0),
            structure(
                "payment terms with invoice number",
                r"\bpayment\s+terms\b",
                r"\binvoice\s*(?:no\b\.?|number\b|#)",
                weight=3.0,
            ),
            keyword("due date", 1.5),
            pattern("net terms", r"\bnet\s+(?:7|14|30|60)\b", 1.5),
            pattern("purchase order", r"\bpurchase\s+order\b|\bPO\s+(?:number|no)\b", 1.5),
            keyword("unit price", 1.5),
            keyword("ship to", 1.5),
            keyword("line item", 1.5),
            keyword("invoice", 1.0),
        ],
        DocumentType.CONTRACT: [
            keyword("this agreement", 3.0),
            keyword("terms and conditions", 3.0),
            keyword("governing law", 3.0),
            keyword("in witness whereof", 3.0),
            keyword("party of the first part", 3.0),
            structure(
                "signed agreement",
                r"\bagreement\b",
                r"\b(?:signature|signed)\b",
                weight=3.0,
            ),
            keyword("whereas", 1.5),
            keyword("hereby", 1.5),
            keyword("herein", 1.5),
            pattern("indemnity", r"\bindemn(?:ity|ify|ification)\b", 1.5),
            keyword("termination", 1.5),
            keyword("breach", 1.5),
            keyword("effective date", 1.5),
            keyword("the parties", 1.5),
            pattern("signature", r"\b(?:signature|signed\s+by)\b", 1.5),
            keyword("agreement", 1.0),
            keyword("contract", 1.0),
            keyword("clause", 1.0),
            keyword("warranty", 1.0),
        ],
        DocumentType.RECEIPT: [
            pattern("receipt number", r"\breceipt\s*(?:no\b\.?|number\b|#)", 3.0),
            keyword("tax invoice", 2.0),
            structure("total with gst", r"\btotal\b", r"\bgst\b", weight=2.0),
            keyword("eftpos", 1.5),
            pattern(
                "thank you",
                r"\bthank\s+you\s+for\s+(?:shopping|your\s+(?:purchase|business|visit))\b",
                1.5,
            ),
            keyword("subtotal", 1.5),
            keyword("gst", 1.5),
            pattern("quantity", r"\b(?:qty|quantity)\b", 1.5),
            keyword("receipt", 1.0),
            keyword("total", 1.0),
            keyword("cash", 1.0),
            keyword("change", 1.0),
            pattern("point of sale", r"\b(?:store|terminal|register)\b", 1.0),
        ],
    })


# =============================================================================
# Share registries
# =============================================================================

@dataclass(frozen=True)
class ProviderProfile:
    """Detection indicators and identifiers of one share registry."""
    provider: RegistryProvider
    indicators: Tuple[Indicator, ...]
    abns: FrozenSet[str] = field(default_factory=frozenset)


def default_provider_profiles() -> List[ProviderProfile]:
    """
    Build the default share-registry profiles.

    Branding phrases outweigh the generic statement phrases that identify
    company-issued (``direct``) statements.
    """
    return [
        ProviderProfile(
            provider=RegistryProvider.COMPUTERSHARE,
            indicators=(
                pattern("computershare", r"\bcomputer\s?share\b", 3.0),
                pattern("investor centre", r"\binvestor\s+(?:centre|center|services)\b", 1.0),
            ),
            abns=frozenset({"48078279277"}),
        ),
        ProviderProfile(
            provider=RegistryProvider.LINK,
            indicators=(
                pattern("link market services", r"\blink\s*market\s*services\b", 3.0),
                pattern("link group", r"\blink\s+(?:administration|group)\b", 3.0),
            ),
            abns=frozenset({"54083214537"}),
        ),
        ProviderProfile(
            provider=RegistryProvider.BOARDROOM,
            indicators=(
                pattern("boardroom", r"\bboard\s?room\b", 3.0),
                pattern("boardroom limited", r"\bboardroom\s+(?:pty\s+)?limited\b", 1.0),
            ),
            abns=frozenset({"14003209836"}),
        ),
        ProviderProfile(
            provider=RegistryProvider.DIRECT,
            indicators=(
                keyword("dividend statement", 1.0),
                pattern("dividend advice", r"\bdividend\s+(?:payment\s+)?advice\b", 1.0),
                keyword("dividend payment", 1.0),
                keyword("distribution statement", 1.0),
            ),
        ),
    ]


def build_provider_registry(profiles: Iterable[ProviderProfile]) -> PatternRegistry[RegistryProvider]:
    """Index provider profiles as a PatternRegistry, keeping profile order."""
    return PatternRegistry({profile.provider: profile.indicators for profile in profiles})


def registry_abns(profiles: Iterable[ProviderProfile]) -> FrozenSet[str]:
    """ABNs belonging to the registries themselves rather than issuers."""
    abns: set = set()
    for profile in profiles:
        abns.update(profile.abns)
    return frozenset(abns)
