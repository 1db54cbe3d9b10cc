"""Selection pricing: minimum package plus progressively discounted extra photos"""

from dataclasses import asdict, dataclass

# (more than N extra photos, discount rate), highest threshold first
EXTRA_PHOTO_DISCOUNTS = ((10, 0.10), (5, 0.05))


@dataclass
class SelectionPrice:
    total: float
    discount: float
    extra_photos_count: int
    package_photos: int
    extra_photos_original_total: float
    is_minimum_package: bool

    @property
    def has_discount(self) -> bool:
        return self.discount > 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["has_discount"] = self.has_discount
        return data


def extra_photo_discount_rate(extra_count: int) -> float:
    for threshold, rate in EXTRA_PHOTO_DISCOUNTS:
        if extra_count > threshold:
            return rate
    return 0.0


def calculate_selection_price(
    selected_count: int,
    minimum_package_price: float = 300.0,
    package_photo_count: int = 10,
    extra_photo_price: float = 30.0,
) -> SelectionPrice:
    """
    Price a photo selection.

    Up to the package size the client pays a proportional share of the package
    price. Beyond it, the full package plus each extra photo, with 5% off the
    extras above 5 and 10% off above 10.
    """
    if selected_count < 0:
        raise ValueError("selected_count cannot be negative")
    if package_photo_count < 1:
        raise ValueError("package_photo_count must be at least 1")

    if selected_count <= package_photo_count:
        total = minimum_package_price / package_photo_count * selected_count
        return SelectionPrice(
            total=round(total, 2),
            discount=0.0,
            extra_photos_count=0,
            package_photos=selected_count,
            extra_photos_original_total=0.0,
            is_minimum_package=selected_count == package_photo_count,
        )

    extra_count = selected_count - package_photo_count
    extras_total = extra_count * extra_photo_price
    discount = extras_total * extra_photo_discount_rate(extra_count)

    return SelectionPrice(
        total=round(minimum_package_price + extras_total - discount, 2),
        discount=round(discount, 2),
        extra_photos_count=extra_count,
        package_photos=package_photo_count,
        extra_photos_original_total=round(extras_total, 2),
        is_minimum_package=False,
    )
