class Valid:
    a: int


class Broken:
    pair: tuple[int, str]
