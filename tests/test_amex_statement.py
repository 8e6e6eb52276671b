from __future__ import annotations

from decimal import Decimal

from statement_ingest.ingest.adapters.amex_statement import (
    SUMMARY_SECTION_LINES,
    align_sequentially,
    collect_candidates,
    find_closest_amount,
    find_minimum_payment,
    parse_amex_statement,
)
from statement_ingest.ingest.dispatch import extract_transactions
from statement_ingest.models import AmountCandidate, RawTransaction, TransactionLine

# ---- Fixtures ------------------------------------------------------------------


def _summary_section() -> list[str]:
    """Fifty lines of account summary: header totals and a repeated transaction."""

    lines = [
        "American Express",
        "Statement of Account",
        "Minimum Payment $25.00",
        "Closing Balance",
        "713.29",
        "27.08.25 COUNTDOWN PONSONBY",
        "45.20",
    ]
    lines += [f"Account summary note {i}" for i in range(len(lines), SUMMARY_SECTION_LINES)]
    assert len(lines) == SUMMARY_SECTION_LINES
    return lines


SPLIT_TRANSACTIONS = [
    ("28.08.25 COUNTDOWN PONSONBY", "45.20"),
    ("28.08.25 UBER *TRIP", "18.75"),
    ("29.08.25 NETFLIX.COM", "22.99"),
    ("30.08.25 Z ENERGY GREAT NORTH RD", "95.10"),
    ("31.08.25 STARBUCKS QUEEN ST", "7.50"),
    ("01.09.25 KMART SYLVIA PARK", "39.00"),
    ("02.09.25 AIR NEW ZEALAND", "1,289.00"),
    ("03.09.25 UNICHEM PHARMACY", "15.80"),
    ("04.09.25 PAYPAL *MIGHTY APE", "64.95"),
    ("05.09.25 ZZQX HOLDINGS", "120.00"),
]


def _split_statement() -> list[str]:
    lines = _summary_section()
    lines.append("27.08.25 PAYMENT - THANK YOU")
    lines += [desc for desc, _ in SPLIT_TRANSACTIONS]
    lines += ["1,500.00", "CR"]  # credit
    lines.append("25.00")  # minimum payment repeated in the body
    lines += [amount for _, amount in SPLIT_TRANSACTIONS]
    lines.append("Total of New Transactions")
    return lines


# ---- Split mode -----------------------------------------------------------------


def test_split_statement_pairs_every_transaction_in_order():
    out = parse_amex_statement(_split_statement())

    assert [(t.date_iso, t.description, t.value) for t in out] == [
        ("2025-08-28", "COUNTDOWN PONSONBY", Decimal("45.20")),
        ("2025-08-28", "UBER *TRIP", Decimal("18.75")),
        ("2025-08-29", "NETFLIX.COM", Decimal("22.99")),
        ("2025-08-30", "Z ENERGY GREAT NORTH RD", Decimal("95.10")),
        ("2025-08-31", "STARBUCKS QUEEN ST", Decimal("7.50")),
        ("2025-09-01", "KMART SYLVIA PARK", Decimal("39.00")),
        ("2025-09-02", "AIR NEW ZEALAND", Decimal("1289.00")),
        ("2025-09-03", "UNICHEM PHARMACY", Decimal("15.80")),
        ("2025-09-04", "PAYPAL *MIGHTY APE", Decimal("64.95")),
        ("2025-09-05", "ZZQX HOLDINGS", Decimal("120.00")),
    ]


def test_summary_section_and_payments_are_ignored():
    direct, transaction_lines, amounts = collect_candidates(_split_statement())

    assert direct == []
    assert all(t.line_index >= SUMMARY_SECTION_LINES for t in transaction_lines)
    assert not any("PAYMENT" in t.description for t in transaction_lines)
    assert len(transaction_lines) == 10
    values = [a.value for a in amounts]
    assert Decimal("1500.00") not in values
    assert Decimal("25.00") not in values
    assert len(amounts) == 10


def test_find_minimum_payment_reads_header_only():
    assert find_minimum_payment(_summary_section()) == Decimal("25.00")
    late = [f"line {i}" for i in range(60)] + ["Minimum Payment $99.00"]
    assert find_minimum_payment(late) is None


def test_amount_filters():
    lines = _summary_section() + [
        "Credit Limit",
        "5,000.00",  # header total
        "Minimum Payment",
        "Statement balance",
        "40.00",  # two lines after "Minimum Payment"
        "12.50",
        "CR",  # credit
        "0.00",
        "60,000.00",
        "18.40",
        "25.00",  # equals the minimum payment
    ]
    _, _, amounts = collect_candidates(lines)
    assert amounts == [AmountCandidate(value=Decimal("18.40"), line_index=59)]


def test_spaced_dots_in_dates_are_accepted():
    lines = _summary_section() + ["29 . 08 . 25 FARRO FRESH", "31.50"]
    out = parse_amex_statement(lines)
    assert out == [
        RawTransaction(
            date_iso="2025-08-29", description="FARRO FRESH", value=Decimal("31.50"), line_index=50
        )
    ]


DETAILED_SECTION = [
    ("29 . 08 . 25 OPENAI                  SAN FRANCISCO", "10.02"),
    ("31 . 08 . 25 PAYPAL *EVENTCINEMA     6129373", "72.40"),
    ("01 . 09 . 25 AT PUBLIC TRANSPORT AT  AUCKLAND CENTRA", "9.30"),
    ("03 . 09 . 25 SKINNY MOBILE AUCKLAND  AUCKLAND", "40.00"),
    ("03 . 09 . 25 PAYPAL *PLAYSTATION     02078595000", "45.95"),
    ("04 . 09 . 25 CHEMIST WAREHOUSE BIRKE GLEN INNES", "22.99"),
    ("06 . 09 . 25 APPLE.COM/BILL          SYDNEY", "9.99"),
    ("08 . 09 . 25 BUNNINGS ONLINE 3 AUCKL AUCKLAND", "49.97"),
    ("08 . 09 . 25 CURSOR USAGE  AUG       NEW YORK", "82.13"),
    ("11 . 09 . 25 WOOLWORTHS BIRKENHEAD 9 AUCKLAND", "80.76"),
]


def _amounts_first_statement() -> list[str]:
    """Header, repeated summary transactions, an amounts block, then the detail lines.

    The amounts block opens with the minimum payment at line 50, so only the
    minimum-payment filter keeps it from shifting every pairing by one.
    """

    lines = [
        "NORBERTO CAROSELLA XXXX-XXXXXX-51006 27 . 08 . 25 26 . 09 . 25",
        "2,461.91 - 3,847.89 + 2,438.23 = 1,052.25",
        "Minimum Payment $ 31.00",
        "Due by 21 . 10 . 2025",
    ]
    lines += [f"Statement notice {i}" for i in range(20)]
    lines += [
        "26 . 08 . 25 WOOLWORTHS PONSONBY 905 PONSONBY",
        "27 . 08 . 25 AT PUBLIC TRANSPORT AT  AUCKLAND CENTRA",
        "27 . 08 . 25 PAYPAL *TEMU COM        4029357733",
        "28 . 08 . 25 AT PUBLIC TRANSPORT AT  AUCKLAND CENTRA",
        "29 . 08 . 25 AT PUBLIC TRANSPORT AT  AUCKLAND CENTRA",
    ]
    lines += [f"Account summary note {i}" for i in range(len(lines), SUMMARY_SECTION_LINES)]
    lines.append("31.00")
    lines += [amount for _, amount in DETAILED_SECTION]
    lines += [f"Card member notice {i}" for i in range(10)]
    lines += [desc for desc, _ in DETAILED_SECTION]
    return lines


EXPECTED_DETAILED = [
    ("2025-08-29", "OPENAI                  SAN FRANCISCO", Decimal("10.02")),
    ("2025-08-31", "PAYPAL *EVENTCINEMA     6129373", Decimal("72.40")),
    ("2025-09-01", "AT PUBLIC TRANSPORT AT  AUCKLAND CENTRA", Decimal("9.30")),
    ("2025-09-03", "SKINNY MOBILE AUCKLAND  AUCKLAND", Decimal("40.00")),
    ("2025-09-03", "PAYPAL *PLAYSTATION     02078595000", Decimal("45.95")),
    ("2025-09-04", "CHEMIST WAREHOUSE BIRKE GLEN INNES", Decimal("22.99")),
    ("2025-09-06", "APPLE.COM/BILL          SYDNEY", Decimal("9.99")),
    ("2025-09-08", "BUNNINGS ONLINE 3 AUCKL AUCKLAND", Decimal("49.97")),
    ("2025-09-08", "CURSOR USAGE  AUG       NEW YORK", Decimal("82.13")),
    ("2025-09-11", "WOOLWORTHS BIRKENHEAD 9 AUCKLAND", Decimal("80.76")),
]


def test_amounts_block_before_transactions_pairs_in_order():
    lines = _amounts_first_statement()
    assert lines[SUMMARY_SECTION_LINES] == "31.00"

    out = parse_amex_statement(lines)

    assert [(t.date_iso, t.description, t.value) for t in out] == EXPECTED_DETAILED


def test_amounts_first_statement_through_dispatch():
    result = extract_transactions(_amounts_first_statement())

    assert result.parser == "amex"
    assert [(t.date_iso, t.place, t.value) for t in result.transactions] == EXPECTED_DETAILED
    assert not any(t.date_iso < "2025-08-29" for t in result.transactions)


# ---- Direct mode ------------------------------------------------------------------


def test_direct_lines_win_over_split_pools():
    lines = [
        "29 . 08 . 25 COUNTDOWN PONSONBY 45.20",
        "30.08.25 PAYMENT - THANK YOU 500.00",
        "31.08.25 CAR YARD 60,000.00",
        "01.09.25 NETFLIX.COM 22.99",
    ] + _summary_section() + ["02.09.25 SPLIT LINE", "10.00"]

    out = parse_amex_statement(lines)

    assert [(t.date_iso, t.description, t.value, t.line_index) for t in out] == [
        ("2025-08-29", "COUNTDOWN PONSONBY", Decimal("45.20"), 0),
        ("2025-09-01", "NETFLIX.COM", Decimal("22.99"), 3),
    ]


def test_direct_lines_with_impossible_dates_fall_back_to_split_mode():
    lines = ["31.02.25 GHOST MERCHANT 10.00"] + _summary_section()[1:] + [
        "02.09.25 SPLIT LINE",
        "12.00",
    ]

    out = parse_amex_statement(lines)

    assert [(t.date_iso, t.description, t.value) for t in out] == [
        ("2025-09-02", "SPLIT LINE", Decimal("12.00")),
    ]


# ---- Alignment and proximity -----------------------------------------------------


def _line(idx: int, description: str = "CAFE") -> TransactionLine:
    return TransactionLine(date="01.09.25", description=description, line_index=idx)


def _amount(idx: int, value: str = "5.00") -> AmountCandidate:
    return AmountCandidate(value=Decimal(value), line_index=idx)


def test_sequential_alignment_skips_stray_leading_amounts():
    lines = [_line(60, "A"), _line(61, "B"), _line(62, "C")]
    amounts = [_amount(10, "999.00"), _amount(70, "1.00"), _amount(71, "2.00"), _amount(72, "3.00")]

    out = align_sequentially(lines, amounts)

    assert [(t.description, t.value) for t in out] == [
        ("A", Decimal("1.00")),
        ("B", Decimal("2.00")),
        ("C", Decimal("3.00")),
    ]


def test_sequential_alignment_requires_similar_pool_sizes():
    four = [_amount(61), _amount(62), _amount(63), _amount(64)]
    assert align_sequentially([_line(60)], four) == []
    assert align_sequentially([], [_amount(61)]) == []


def test_find_closest_amount_prefers_after_then_before_then_same_line():
    used: set[int] = set()
    assert find_closest_amount(50, [_amount(47), _amount(53)], used) == 1
    assert used == {1}

    # The amount ahead is beyond PROXIMITY_AFTER, so the one behind wins.
    assert find_closest_amount(50, [_amount(40), _amount(58)], set()) == 0
    assert find_closest_amount(50, [_amount(50)], set()) == 0
    assert find_closest_amount(50, [_amount(10), _amount(90)], set()) is None
    assert find_closest_amount(50, [_amount(51)], {0}) is None


def test_proximity_matching_when_pools_differ():
    lines = _summary_section() + [
        "01.09.25 CAFE ONE",
        "02.09.25 CAFE TWO",
        "03.09.25 CAFE THREE",
        "04.09.25 CAFE FOUR",
        "05.09.25 CAFE FIVE",
        "06.09.25 CAFE SIX",
        "5.50",
        "6.00",
    ]

    out = parse_amex_statement(lines)

    assert [(t.description, t.value) for t in out] == [
        ("CAFE TWO", Decimal("5.50")),
        ("CAFE THREE", Decimal("6.00")),
    ]
