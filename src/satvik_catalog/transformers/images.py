"""Image URL resolution.

Resolution order for a product image:

1. an explicit image URL on the source record,
2. a bundled product photo matched by filename (or by product id/name),
3. the generic placeholder.

The result always carries a usable ``url`` and a ``fallback_url`` for the
client to swap in when the primary image fails to load.
"""

import re
from typing import Any

from satvik_catalog.models.catalog import ImageSource, UnifiedImage
from satvik_catalog.transformers.context import TransformationContext

# Product photos shipped with the storefront build.
BUNDLED_ASSETS: frozenset[str] = frozenset(
    {
        "flax_seed_chutney_powder.jpg",
        "jawar_rotti.jpg",
        "kardantu.jpg",
        "kunda.jpg",
        "makhana_cream_onion.jpg",
        "makhana_peri_peri.jpg",
        "makhana_tangy_cheese.jpg",
        "millet_biryani.jpg",
        "millet_bisi_bele_bath.jpg",
        "millet_dosa.jpg",
        "millet_idly.jpg",
        "millet_kheer.jpg",
        "millet_khichdi.jpg",
        "millet_upma.jpg",
        "millets_energy_drink.jpg",
        "millets_rotti.jpg",
        "niger_chutney_powder.jpg",
        "peanut_chutney_powder.jpg",
        "red_chiili_powder.jpg",
        "sajje_rotti.jpg",
        "supreme_dink_laddu.jpg",
        "turmeric_powder.jpg",
        "idli_rice.png",
        "jeerakalasa_rice.png",
        "matta_rice.png",
        "ponni_rice.png",
        "sona_masoori_rice.png",
    }
)

# Products whose name is shared with another brand's product.
PRODUCT_ID_TO_ASSET: dict[str, str] = {
    "priya-sona-masoori": "sona_masoori_priya.jpg",
    "nilgiris-sona-masoori": "sona_masoori_rice.png",
}

# Lower-cased product name -> bundled filename. Order matters for partial matches.
PRODUCT_NAME_TO_ASSET: dict[str, str] = {
    "flaxseed chutney powder": "flax_seed_chutney_powder.jpg",
    "jawar rotti": "jawar_rotti.jpg",
    "kardantu": "kardantu.jpg",
    "kunda": "kunda.jpg",
    "makhana cream onion": "makhana_cream_onion.jpg",
    "makhana peri peri": "makhana_peri_peri.jpg",
    "makhana tangy cheese": "makhana_tangy_cheese.jpg",
    "millet biryani": "millet_biryani.jpg",
    "millet bisi bele bath": "millet_bisi_bele_bath.jpg",
    "millet dosa": "millet_dosa.jpg",
    "millet idly": "millet_idly.jpg",
    "millet kheer": "millet_kheer.jpg",
    "millet khichdi": "millet_khichdi.jpg",
    "millet upma": "millet_upma.jpg",
    "millets energy drink": "millets_energy_drink.jpg",
    "millets rotti": "millets_rotti.jpg",
    "niger chutney powder": "niger_chutney_powder.jpg",
    "peanut chutney powder": "peanut_chutney_powder.jpg",
    "red chilli powder": "red_chiili_powder.jpg",
    "sajje rotti": "sajje_rotti.jpg",
    "supreme dink laddu": "supreme_dink_laddu.jpg",
    "turmeric powder": "turmeric_powder.jpg",
    "idli rice": "idli_rice.png",
    "jeerakasala rice": "jeerakalasa_rice.png",
    "jeerakalasa rice": "jeerakalasa_rice.png",
    "palakaddan matta rice": "matta_rice.png",
    "matta rice": "matta_rice.png",
    "thanjavoor ponni rice": "ponni_rice.png",
    "ponni rice": "ponni_rice.png",
    "sona masoori": "sona_masoori_rice.png",
    "sona masoori rice": "sona_masoori_rice.png",
}

_SANITY_REF_RE = re.compile(r"^image-(?P<asset>[A-Za-z0-9]+)-(?P<dims>\d+x\d+)-(?P<fmt>[a-z0-9]+)$")


def is_absolute_url(value: str) -> bool:
    return value.startswith(("http://", "https://", "//"))


def find_asset_filename(name: str | None, product_id: str | None = None) -> str | None:
    """Match a product to a bundled photo filename by id, then exact name, then partial name."""
    if product_id and product_id in PRODUCT_ID_TO_ASSET:
        return PRODUCT_ID_TO_ASSET[product_id]

    key = (name or "").strip().lower()
    if not key:
        return None
    if key in PRODUCT_NAME_TO_ASSET:
        return PRODUCT_NAME_TO_ASSET[key]
    for known, filename in PRODUCT_NAME_TO_ASSET.items():
        if known in key or key in known:
            return filename
    return None


def local_asset_url(filename: str | None, context: TransformationContext) -> str | None:
    """URL of a bundled photo, or None when the filename is not shipped."""
    if not filename or filename not in BUNDLED_ASSETS:
        return None
    return f"{context.asset_base_url.rstrip('/')}/{filename}"


def sanity_image_url(image: dict[str, Any] | None, context: TransformationContext) -> str | None:
    """
    Build a Sanity CDN URL from an image field.

    Accepts a dereferenced asset (``asset.url``) or a bare reference of the
    form ``image-<id>-<width>x<height>-<format>``.
    """
    if not image or not isinstance(image, dict):
        return None
    asset = image.get("asset") or {}
    if asset.get("url"):
        return asset["url"]
    match = _SANITY_REF_RE.match(asset.get("_ref") or "")
    if not match:
        return None
    return (
        f"https://cdn.sanity.io/images/{context.sanity_project_id}/{context.sanity_dataset}/"
        f"{match['asset']}-{match['dims']}.{match['fmt']}"
    )


def resolve_image(
    *,
    context: TransformationContext,
    alt: str,
    explicit_url: str | None = None,
    explicit_source: ImageSource = ImageSource.EXTERNAL,
    filename: str | None = None,
    product_id: str | None = None,
    name: str | None = None,
    original_name: str | None = None,
) -> UnifiedImage:
    """Resolve a product image through the explicit URL, bundled asset, placeholder chain."""
    placeholder = context.placeholder_image
    filename = (filename or "").strip() or None

    # A local record may carry an absolute URL in its filename slot.
    if not explicit_url and filename and is_absolute_url(filename):
        explicit_url, filename = filename, None

    asset_name = filename if local_asset_url(filename, context) else None
    if asset_name is None:
        matched = find_asset_filename(name, product_id)
        if local_asset_url(matched, context):
            asset_name = matched
    asset_url = local_asset_url(asset_name, context)

    explicit_url = (explicit_url or "").strip()
    if explicit_url:
        return UnifiedImage(
            url=explicit_url,
            alt=alt,
            source=explicit_source if is_absolute_url(explicit_url) else ImageSource.LOCAL,
            fallback_url=asset_url or placeholder,
            original_name=original_name or explicit_url,
        )

    if asset_url:
        return UnifiedImage(
            url=asset_url,
            alt=alt,
            source=ImageSource.LOCAL,
            fallback_url=placeholder,
            original_name=asset_name,
        )

    return UnifiedImage(
        url=placeholder,
        alt=alt,
        source=ImageSource.LOCAL,
        fallback_url=placeholder,
        original_name=filename or "placeholder",
    )


def external_image(url: str, alt: str, context: TransformationContext) -> UnifiedImage:
    """Wrap an already-known URL (gallery entries, logos)."""
    url = url.strip() or context.placeholder_image
    return UnifiedImage(
        url=url,
        alt=alt,
        source=ImageSource.EXTERNAL if is_absolute_url(url) else ImageSource.LOCAL,
        fallback_url=context.placeholder_image,
    )
