"""
tables.py — canonical name tables for hammadde-usage

The tables are plain ordered tuples so first-match-wins lookups keep their
order. They are validated once at import:

    RESOURCE_PATTERNS      — (substring pattern, canonical resource) pairs
                             used for supply descriptions and the supply
                             allow-list
    PRODUCT_NAMES          — (POS product name, canonical recipe product)
    BRANCH_EXACT_NAMES     — whole-name Turkish letter restoration
    BRANCH_RESTORE_RULES   — (regex, replacement) prefix/suffix restoration

Duplicate patterns pointing at the same canonical name are collapsed, a
duplicate pointing somewhere else raises TableError, and a pattern that can
never win because an earlier pattern is a substring of it is reported in the
matching *_WARNINGS tuple.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Iterable, Mapping


class TableError(ValueError):
    pass


def fold_lower(text: str) -> str:
    """Lower-case for substring matching without the dotted-I combining mark."""
    return text.replace("İ", "i").lower().replace("\u0307", "")


# ══════════════════════════════════════════════════════════════════════════════
# SUPPLY RESOURCE NAMES
# ══════════════════════════════════════════════════════════════════════════════

_RAW_RESOURCE_PATTERNS: tuple[tuple[str, str], ...] = (
    # chocolate
    ("callebout sutlu", "SÜTLÜ.ÇİK."),
    ("callebout kuvertur bitter", "BİTTER.ÇİK."),
    ("kuvertur beyaz", "BEYAZ.ÇİK."),
    ("kuvertur bitter", "BİTTER.ÇİK."),
    # whipping cream
    ("ambiante sivi bitk.santi", "AMBİANTE"),
    ("festipak sivi bitk.santi", "FESTİPAK"),
    # mixes
    ("suffle toz karisim", "SUFLE MIX"),
    ("waffle toz karisim", "WAFFLE MİX"),
    ("red-velvet", "RED VELVET MIX"),
    ("cookies bag sade", "COOKİE SADE MIX"),
    ("soft cookies kakaolu", "COOKİE CACAO MIX"),
    ("cream cake toffee", "TOFFEE MIX"),
    ("moist-islak kek mix", "KAKAOLU KEK-MIX"),
    ("csm-islak kek mix", "KAKAOLU KEK-MIX"),
    ("kakaolu kek-mix", "KAKAOLU KEK-MIX"),
    ("kakaolu kek-mi̇x", "KAKAOLU KEK-MIX"),
    ("tegral mochi mix", "MOCHİ MİX"),
    ("antep fistikli mix", "ANTEP FISTIKLI MİX"),
    ("cicibebe mix bag", "BİSKÜVİ MIX"),
    # nuts and fruit
    ("hindistan cevizi", "H.CEVİZİ"),
    ("badem dilimlenmis", "BADEM"),
    ("krep kirigi", "K.KIRIĞI"),
    ("pastacilik yagi", "P.YAĞI"),
    ("antep fistiği içi tane", "ANTEP FISTIĞI TANE"),
    ("antep fistiği iç tane", "ANTEP FISTIĞI TANE"),
    ("toz antep fistik", "ANTEP FISTIĞI TOZ"),
    ("toz antep fıstık", "ANTEP FISTIĞI TOZ"),
    ("antep fistik toz", "ANTEP FISTIĞI TOZ"),
    ("antep fıstık toz", "ANTEP FISTIĞI TOZ"),
    ("antep fistik tuttuno", "ANTEP FISTIĞI TUTTUNO"),
    ("yer fistiği kremasi", "YER FISTIĞI KREMASI"),
    ("bütün yer fistiği", "BÜTÜN YER FISTIĞI"),
    ("FINDIK ICI PIRINC GIRE 5 KG", "P.FINDIK"),
    # creams and toppings
    ("deli hazir krema karamelli", "DELİ KARAMEL"),
    ("deli hazir krema limonlu", "DELİ LİMON"),
    ("labne", "LABNE"),
    ("frambuaz ganaj", "FRAMBUAZ GANAJ"),
    ("pastacilik kremasi", "CPT"),
    ("tarcin karamtuttunopaste", "TARÇIN TUTTUNO"),
    # frozen
    ("donuk böğürtlen", "DONUK BÖĞÜRTLEN"),
    ("donuk frambuaz", "DONUK FRAMBUAZ"),
    ("limonata donuk", "LİMONATA"),
    # decoration and pastry
    ("barlo dec. chocol bitter bukle", "BİTTER BUKLE"),
    ("tereyağli milfoy hamuru", "MİLFÖY"),
    # coffee
    ("espresso cekirdek", "ESPRESSO"),
    ("filtre kahve", "FİLTRE KAHVE SADE"),
    ("turk kahvesi", "TÜRK KAHVESİ"),
    ("turk kahve damla sakiz", "DAMLA SAKIZLI TÜRK KAHVESİ"),
    ("dibek kahvesi", "DİBEK KAHVESİ"),
    # tea
    ("chai tea latte", "CHAİ TEA TOZU"),
    ("cay suzme brgmt dogus", "DOĞUŞ ÇAY"),
    ("bergamotlu çay", "DOĞUŞ ÇAY"),
    ("cay suzme brgmtsuz dogus", "BERGAMOTSUZ ÇAY"),
    ("cay elma", "ELMA ÇAYI"),
    ("cay ihlamur", "IHLAMUR ÇAYI"),
    ("cay kis", "KIŞ ÇAYI"),
    ("cay kusburnu", "KUŞBURNU ÇAYI"),
    ("cay melisa", "MELİSA ÇAYI"),
    ("cay nane limon", "NANE LİMON ÇAYI"),
    ("cay papatya", "PAPATYA ÇAYI"),
    ("cay tropikal", "TROPİKAL ÇAYI"),
    ("cay yesil", "YEŞİL ÇAY"),
    ("cay adacayi", "ADAÇAYI"),
    ("hibiskus", "HİBİSKUS ÇAYI"),
    # DVG syrups and flavourings
    ("dvg flavour maxx", "FLAVOUR MAX"),
    ("dvg b.scot", "BUTTERSCOTCH"),
    ("dvg findik surup", "FINDIK ŞURUP"),
    ("dvg vanilya surup", "VANİLYA ŞURUP"),
    ("dvg limon aroma verici", "LİMON AROMA VERİCİ"),
    ("dvg carkifelek meyve karisim", "ÇARKIFELEK MEYVE KARIŞIM"),
    ("dvg krater bogurtlen p", "BÖĞÜRTLEN PÜRE"),
    ("dvg krater y.elma p", "YEŞİL ELMA PÜRE"),
    ("dvg spiced chai surup", "SPİCED CHAİ ŞURUP"),
    ("dvg nane& limon aro.kar", "NANE VE LİMON AROMA KARIŞIM"),
    ("dvg greyfurt karisim", "GREYFURT ŞURUP"),
    ("dvg aci portakal surup", "ACI PORTAKAL"),
    ("dvg cilek aroma surup", "ÇİLEK ŞURUP"),
    ("dvg mango surup", "MANGO ŞURUP"),
    ("dvg bahce seftali .surup", "ŞEFTALİ ŞURUP"),
    ("dvg maviturun blueocean", "BLUE OCEAN ŞURUP"),
    ("dvg sos beyaz", "SOS BEYAZ"),
    ("dvg sos bitter", "SOS BİTTER"),
    ("dvg muz aromali surup", "MUZ ŞURUP"),
    ("dvg w.melon karpuz s", "KARPUZ ŞURUP"),
    ("dvg karamel aromali sos", "KARAMEL SOS"),
    # MONIN
    ("monin-siyah cikolata sos", "SOS BİTTER"),
    ("monin-beyaz cikolatasos", "SOS BEYAZ"),
    ("monin-findik surup", "FINDIK ŞURUP"),
    ("monin-vanilya surup", "VANİLYA ŞURUP"),
    ("monin-chai tea surup", "SPİCED CHAİ ŞURUP"),
    ("monin-cilek surup", "ÇİLEK ŞURUP"),
    ("monin-carkifelek meyv.pure", "ÇARKIFELEK MEYVE KARIŞIM"),
    ("monin-muz surup", "MUZ ŞURUP"),
    ("monin-karpuz surup", "KARPUZ ŞURUP"),
    ("monin-mango surup", "MANGO ŞURUP"),
    ("monin-nar surup", "NAR ŞURUP"),
    # sauces
    ("sos cikolata bitter 1000 gr", "SOS BİTTER"),
    ("sos cikolata beyaz 1000 gr", "SOS BEYAZ"),
    # croissant
    ("kuruvasan sade", "KRUVASAN SADE"),
    ("kuruvasan uc peynirli", "KRUVASAN ÜÇ PEYNİRLİ"),
    # coffee beans
    ("sumatra dunya", "SUMATRA"),
    ("kenya dunya", "KENYA"),
    ("ethiopian dunya", "ETHİOPİA"),
    ("costa rica dunya", "COSTARİCA"),
    ("colombia dunya", "COLOMBİA"),
    ("brasil dunya", "BRASİL"),
    # other beverages
    ("smoothies", "SMOOTIE TOZU"),
    ("salep teneke", "SAHLEP"),
    ("french vanilla", "FRENCH VANİLLA"),
    ("hazelnut aro.kahve", "HAZELNUT"),
    ("caramel aro.kahve", "CARAMEL"),
    ("choco cherry a.kahve", "CHOCOLATE CHERRY"),
    ("swiss choc.aro.kahve", "SWİSS CHOCOLATE"),
    ("choco.raspberry", "CHOCOLATE RASPBERRY"),
    ("salep damla sakizli", "SAHLEP DAMLA SAKIZLI"),
    # bubble tea
    ("bobaco blueberry", "BLUE BUBBLE"),
    ("bobaco bubble gum", "PINK BUBBLE"),
    ("bobaco blueberry kova 3.4kg", "BLUE BUBBLE"),
    ("bobaco bubble gum kova 3.4kg", "PINK BUBBLE"),
    ("ÇAY", "DOĞUŞ ÇAY"),
    ("BERGAMOTLU ÇAY", "DOĞUŞ ÇAY"),
    ("FİNCAN ÇAY", "DOĞUŞ ÇAY"),
)


# ══════════════════════════════════════════════════════════════════════════════
# POS PRODUCT NAMES
# ══════════════════════════════════════════════════════════════════════════════

_RAW_PRODUCT_NAMES: tuple[tuple[str, str], ...] = (
    ("YEŞİL ELMALI LİMONATA", "YEŞİL ELMALI LİMONATA"),
    ("YER FISTIKLI MAZE", "YER FISTIKLI MAZE"),
    ("YER FISTIKLI", "YER FISTIKLI"),
    ("XL PAKET CHOCOLABS SARMA", "SARMA ÇİFT KİŞİLİK"),
    ("XL CHOCOLABS SARMA", "SARMA ÇİFT KİŞİLİK"),
    ("WHITE MOCHA", "WHITE MOCHA"),
    ("WHITE FRAPPE", "WHITE FRAPPE"),
    ("WAFFLE", "WAFFLE"),
    ("ÜÇ PEYNİRLİ KRUVASAN", "ÜÇ PEYNİRLİ KRUVASAN"),
    ("TÜRK KAHVESİ", "TÜRK KAHVESİ"),
    ("TRİFLE", "TRİFLE"),
    ("TOFFY NUT LATTE", "TOFFEE NUT LATTE"),
    ("ŞEFTALİ,GREYFURT,CHİA TOHUMLU SOĞUK ÇAY", "ŞEF.GR.CH.TOH.ÇAY"),
    ("SUMATRA", "SUMATRA"),
    ("SUFLE", "SUFLE"),
    ("STRAWBERRY MOCHA", "STRAWBERRY MOCHA"),
    ("SOĞUK CHAİ TEA LATTE", "SOĞUK CHAİ TEA LATTE"),
    ("SİYAH SICAK ÇİKOLATA", "SİYAH SICAK ÇİKOLATA"),
    ("SAHLEP", "SAHLEP"),
    ("SADE FİLTRE KAHVE", "FİLTRE KAHVE SADE"),
    ("PORSİYON DONDURMA", "PORSİYON DONDURMA"),
    ("PLATONİK", "PLATONİK"),
    ("PİNK BUBBLE", "PINK BUBBLE"),
    ("PAKET YER FISTIKLI", "YER FISTIKLI"),
    ("PAKET WAFFLE", "WAFFLE"),
    ("PAKET TRİFLE", "TRİFLE"),
    ("PAKET NEFİN", "NEFİN"),
    ("PAKET MELANKOLİK", "MELANKOLİK"),
    ("PAKET MEFTUN", "MEFTUN"),
    ("PAKET MAŞUK", "MAŞUK"),
    ("PAKET DİVANE", "DİVANE"),
    ("PAKET CHOCOLABS SARMA", "SARMA TEK KİŞİLİK"),
    ("PAKET ANTEP FISTIKLI", "ANTEP FISTIKLI"),
    ("NEFİN", "NEFİN"),
    ("NARLI,NANELİ SOĞUK ÇAY", "NARLI.NANE.ÇAY"),
    ("MUZLU,MAYDONOZLU LİMONATA", "MUZLU MAYDONOZLU LİMONATA"),
    ("MUFFİN REDVELVET", "RED VELVET MUFFIN"),
    ("MUFFİN KARAMEL", "KARAMELLİ MUFFIN"),
    ("MUFFİN ÇİKOLATALI", "ÇİKOLATALI MUFFIN"),
    ("MİNİ MAŞUK", "MİNİ MAŞUK"),
    ("MİLKSHAKE VANİLYA", "VANİLYALI MİLKSHAKE"),
    ("MİLKSHAKE MUZ", "MUZLU MİLKSHAKE"),
    ("MİLKSHAKE ÇİLEK", "ÇİLEKLİ MİLKSHAKE"),
    ("MİLKSHAKE ÇİKOLATA", "ÇİKOLATALI MİLKSHAKE"),
    ("MİLKSHAKE COOKİE", "COOKİE MİLKSHAKE"),
    ("MEYVELİ", "MEYVELİ"),
    ("MELANKOLİK", "MELANKOLİK"),
    ("MEFTUN", "MEFTUN"),
    ("MAŞUK", "MAŞUK"),
    ("MANGO SOĞUK ÇAY", "MANGO SOĞUK ÇAY"),
    ("LOTUS CHEESECAKE", "LOTUSLU CHEESECAKE"),
    ("LİMONLU CHEESECAKE", "LİMONLU CHEESECAKE"),
    ("LİMONATA", "LİMONATA"),
    ("LATTE MACHİATO", "LATTE MACCHİATO"),
    ("KRUVASAN SADE", "KRUVASAN SADE"),
    ("KRUVASAN ÇİKOLATALI", "KRUVASAN ÇİKOLATALI"),
    ("KENIA", "KENYA"),
    ("KARPUZLU SOĞUK ÇAY", "KARPUZ SOĞUK ÇAY"),
    ("KARPUZ NANE LİMONATA", "KARPUZLU LİMONATA"),
    ("KARAMELLİ", "KARAMELLİ"),
    ("ICED WHITE MOCHA", "ICE WHİTE MOCHA"),
    ("ICED LATTE", "ICE LATTE"),
    ("ICED DARK MOCHA", "ICE DARK MOCHA"),
    ("ICED CAPUCCİNO", "ICE CAPPUCCINO"),
    ("ICED AMERİCANO", "ICE AMERİCANO"),
    ("HOT MONKEY", "HOT MONKEY"),
    ("HAZELNUT", "HAZELNUT"),
    ("FRESH LİME", "FRESH LIME"),
    ("FRAMBUAZLI MAZE", "FRAMBUAZLI MAZE"),
    ("FRAMBUAZLI CHEESECAKE", "FRAMBUAZLI CHEESECAKE"),
    ("FLAT WHİTE", "FLAT WHİTE"),
    ("ETHIOPIA", "ETHIOPIA"),
    ("ESPRESSO MACHİATO", "ESPRESSO MACCHİATO"),
    ("ESPRESSO", "ESPRESSO"),
    ("EKSTRA YARIM POT ÇİKOLATA", "YARIM POT ÇİKOLATA"),
    ("EKSTRA ŞANTİ", "EXT ŞANTİ"),
    ("EKSTRA BİR POT ÇİKOLATA", "BİR POT ÇİKOLATA"),
    ("DOUBLE TÜRK KAHVESİ", "DOUBLE TÜRK KAHVESİ"),
    ("DOUBLE ESPRESSO", "DOUBLE ESPRESSO"),
    ("DONDURMA", "TOP DONDURMA"),
    ("DİVANE", "DİVANE"),
    ("DİBEK KAHVESİ", "DİBEK KAHVESİ"),
    ("DARK MOCHA", "DARK MOCHA"),
    ("DARK FRAPPE", "DARK FRAPPE"),
    ("DAMLA SAKIZLI TÜRK KAHVESİ", "DAMLA SAKIZLI TÜRK KAHVESİ"),
    ("ÇİLEKLİ LİMONATA", "ÇİLEKLİ LİMONATA"),
    ("ÇİKOLATALI CHEESECAKE", "ÇİKOLATALI CHEESECAKE"),
    ("ÇİKOLATALI", "ÇİKOLATALI"),
    ("ÇAY", "DOĞUŞ ÇAY"),
    ("ÇARKIFELEK MEYVELİ,NANELİ LİMONATA", "ÇARKIFELEK LİMONATA"),
    ("COSTA RICA", "COSTARİCA"),
    ("CORTADO", "CORTADO"),
    ("COOKİE YER FISTIKLI", "YER FISTIKLI COOKIE"),
    ("COOKİE SADE", "SADE COOKIE"),
    ("COOKİE REDVELVET", "RED COOKIE"),
    ("COOKİE ÇİKOLATALI", "ÇİKOLATALI COOKIE"),
    ("COLOMBİA", "COLOMBİA"),
    ("CHOCOLATE RASPBERRY", "CHOCOLATE RASPBERRY"),
    ("CHOCOLABS SARMA", "SARMA TEK KİŞİLİK"),
    ("CHOCOLABS PASTA 8 KİŞİLİK", "8 KİŞİLİK PASTA"),
    ("CHOCOLABS PASTA 4 KİŞİLİK", "4 KİŞİLİK PASTA"),
    ("CHOCOLABS KRUVASAN", "CHOCOLABS KRUVASAN"),
    ("CHAI TEA LATTE", "CHAI TEA LATTE"),
    ("CAPPUCCİNO", "CAPPUCCİNO"),
    ("CAFE LATTE", "LATTE"),
    ("BUBBLE MANGO", "BUBBLE MANGO"),
    ("BUBBLE KARPUZ", "BUBBLE KARPUZ"),
    ("BUBBLE ELMA", "BUBBLE ELMA"),
    ("BÖĞÜRTLEN LİMONATA", "BÖĞÜRTLEN LİMONATA"),
    ("BLUEBERRY BUBBLE LEMONATE", "BLUEBERRY BUBBLE LİMONATA"),
    ("BLUE BUBBLE", "BLUE BUBBLE"),
    ("BEYAZ SICAK ÇİKOLATA", "BEYAZ SICAK ÇİKOLATA"),
    ("BEYAZ ÇİKOLATALI,PORTAKALLI MOCHA", "BEY.ÇİK.PORT.MOCHA"),
    ("BANANA MOCHA", "BANANA MOCHA"),
    ("BAHARATLI LİMONATA", "BAHARATLI LİMONATA"),
    ("ATEŞPARE", "ATEŞPARE"),
    ("AROMALI LATTE", "AROMALI LATTE"),
    ("ANTEP FISTIKLI MAZE", "ANTEP FISTIKLI MAZE"),
    ("ANTEP FISTIKLI", "ANTEP FISTIKLI"),
    ("AMERİCANO", "AMERİCANO"),
    ("AFFOGATO", "AFFOGATO"),
    ("BERGAMOTLU ÇAY", "DOĞUŞ ÇAY"),
    ("FİNCAN ÇAY", "DOĞUŞ ÇAY"),
    ("ISLAK KEK", "KAKAOLU KEK-MIX"),
    ("KAKAOLU KEK-MIX", "KAKAOLU KEK-MIX"),
    ("KAKAOLU KEK-MİX", "KAKAOLU KEK-MIX"),
)

# Literal POS names resolved ahead of the product table.
PRODUCT_SPECIAL_CASES: Mapping[str, str] = MappingProxyType({
    "CHOCOLABS SARMA": "SARMA TEK KİŞİLİK",
    "XL CHOCOLABS SARMA": "SARMA ÇİFT KİŞİLİK",
    "XL PAKET CHOCOLABS SARMA": "SARMA ÇİFT KİŞİLİK",
})


# ══════════════════════════════════════════════════════════════════════════════
# BRANCH NAMES
# ══════════════════════════════════════════════════════════════════════════════

TURKISH_TO_ASCII = str.maketrans({
    "İ": "I", "ı": "i",
    "Ğ": "G", "ğ": "g",
    "Ü": "U", "ü": "u",
    "Ş": "S", "ş": "s",
    "Ö": "O", "ö": "o",
    "Ç": "C", "ç": "c",
})

BRANCH_EXACT_NAMES: Mapping[str, str] = MappingProxyType({
    "IZMIR ALSANCAK": "İZMİR ALSANCAK",
    "IZMIR MAVIBAHCE": "İZMİR MAVİBAHÇE",
})

BRANCH_RESTORE_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^ISTANBUL"), "İSTANBUL"),
    (re.compile(r"^IZMIR"), "İZMİR"),
    (re.compile(r" CANKAYA$"), " ÇANKAYA"),
    (re.compile(r" MAVIBAHCE$"), " MAVİBAHÇE"),
)


# ══════════════════════════════════════════════════════════════════════════════
# VALIDATION
# ══════════════════════════════════════════════════════════════════════════════

def validate_pattern_table(
    entries: Iterable[tuple[str, str]],
    *,
    table_name: str,
    key=fold_lower,
    check_shadowing: bool = True,
) -> tuple[tuple[tuple[str, str], ...], tuple[str, ...]]:
    """
    Return (deduplicated entries, warnings) for an ordered pattern table.

    Patterns are compared after ``key`` so "ÇAY" and "çay" count as the same
    pattern. Entries keep their first position.
    """
    seen: dict[str, str] = {}
    kept: list[tuple[str, str]] = []
    warnings: list[str] = []

    for pattern, canonical in entries:
        folded = key(pattern).strip()
        if not folded:
            raise TableError(f"{table_name}: empty pattern for {canonical!r}")
        if folded in seen:
            if seen[folded] != canonical:
                raise TableError(
                    f"{table_name}: pattern {pattern!r} maps to both "
                    f"{seen[folded]!r} and {canonical!r}"
                )
            warnings.append(f"{table_name}: duplicate pattern {pattern!r} dropped")
            continue
        if check_shadowing:
            for earlier, earlier_canonical in kept:
                if key(earlier) in folded:
                    warnings.append(
                        f"{table_name}: pattern {pattern!r} is shadowed by {earlier!r} "
                        f"({earlier_canonical})"
                    )
                    break
        seen[folded] = canonical
        kept.append((folded, canonical))

    return tuple(kept), tuple(warnings)


RESOURCE_PATTERNS, RESOURCE_TABLE_WARNINGS = validate_pattern_table(
    _RAW_RESOURCE_PATTERNS,
    table_name="resource names",
)

# Exact lookup wins before the ordered scan, so a longer name after a shorter
# one is still reachable and only duplicates are checked.
PRODUCT_NAMES, PRODUCT_TABLE_WARNINGS = validate_pattern_table(
    _RAW_PRODUCT_NAMES,
    table_name="product names",
    key=lambda text: text,
    check_shadowing=False,
)
