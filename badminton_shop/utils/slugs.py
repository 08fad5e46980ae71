# badminton_shop/utils/slugs.py
from slugify import slugify


def make_slug(text: str) -> str:
    # "Vợt Yonex Astrox 88D" -> "vot-yonex-astrox-88d"
    return slugify(text.replace("đ", "d").replace("Đ", "D"))
