class Helper:
    n: int
