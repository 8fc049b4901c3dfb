"""
Bill arithmetic.

GST bills split tax into central (CGST) and state (SGST) parts for
intra-state supply, or charge integrated tax (IGST) for inter-state supply;
non-GST bills and GST bills marked non-taxable carry no tax at all.
"""
from decimal import ROUND_HALF_UP, Decimal

TWO_PLACES = Decimal('0.01')
HUNDRED = Decimal('100')

DEFAULT_HSN_CODE = '7113'
DEFAULT_CGST_PERCENTAGE = Decimal('9.00')
DEFAULT_SGST_PERCENTAGE = Decimal('9.00')
DEFAULT_IGST_PERCENTAGE = Decimal('0.00')


def money(value):
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def price_lines(items):
    """Return (lines with their ``amount`` filled in, subtotal)"""
    lines = []
    subtotal = Decimal('0.00')
    for item in items:
        amount = money(Decimal(str(item['quantity'])) * Decimal(str(item['rate'])))
        line = dict(item)
        line['quantity'] = str(item['quantity'])
        line['rate'] = str(money(item['rate']))
        line['amount'] = str(amount)
        lines.append(line)
        subtotal += amount
    return lines, money(subtotal)


def calculate_bill(bill_type, items, is_taxable=True,
                   cgst_percentage=DEFAULT_CGST_PERCENTAGE,
                   sgst_percentage=DEFAULT_SGST_PERCENTAGE,
                   igst_percentage=DEFAULT_IGST_PERCENTAGE):
    """Compute lines, tax components and grand total for a bill"""
    lines, subtotal = price_lines(items)
    taxed = bill_type == 'GST' and is_taxable

    if taxed:
        cgst = money(subtotal * Decimal(str(cgst_percentage)) / HUNDRED)
        sgst = money(subtotal * Decimal(str(sgst_percentage)) / HUNDRED)
        igst = money(subtotal * Decimal(str(igst_percentage)) / HUNDRED)
    else:
        cgst = sgst = igst = Decimal('0.00')

    return {
        'items': lines,
        'subtotal': subtotal,
        'cgst': cgst,
        'sgst': sgst,
        'igst': igst,
        'total_amount': money(subtotal + cgst + sgst + igst),
        'is_taxable': taxed,
    }
