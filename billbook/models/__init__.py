from decimal import Decimal, InvalidOperation


def format_inr(amount: Decimal | int | float) -> str:
    """Format an amount as INR with Indian digit grouping: 123456.5 -> '₹1,23,456.50'"""
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}₹{whole}.{fraction}"


def parse_decimal(value: str) -> Decimal | None:
    """Parse user input like '150.50' into a Decimal. Blank input reads as zero."""
    value = value.strip().replace(",", "")
    if not value:
        return Decimal("0")
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return parsed
