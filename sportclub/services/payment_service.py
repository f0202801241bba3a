from decimal import Decimal, ROUND_HALF_UP
from sportclub.extensions import db
from sportclub.models import LicencePayment, StagePayment, PaymentStatus, parse_enum, local_now
from sportclub.utils.dates import parse_date, add_months

MAX_INSTALLMENTS = 12


def generate_installments(total, count, first_due):
    """
    Split a total into equal monthly installments.

    Args:
        total: amount to split
        count: number of installments, 1 to 12
        first_due: due date of the first installment

    Returns:
        list of (installment_number, amount, due_date)

    Raises:
        ValueError: if count is outside 1..12 or total is negative
    """
    count = int(count)
    if count < 1 or count > MAX_INSTALLMENTS:
        raise ValueError(f"Installment count must be between 1 and {MAX_INSTALLMENTS}")
    total = float(total)
    if total < 0:
        raise ValueError("Total amount cannot be negative")

    amount = float((Decimal(str(total)) / count).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))
    return [
        (i + 1, amount, add_months(first_due, i))
        for i in range(count)
    ]


def parse_installment_request(data):
    """Validate the installmentCount / totalAmount / firstDueDate trio from a request body"""
    count = data.get('installmentCount')
    total = data.get('totalAmount')
    first_due = data.get('firstDueDate')
    if count in (None, '') or total in (None, '') or not first_due:
        raise ValueError('installmentCount, totalAmount and firstDueDate are required')
    try:
        count = int(count)
        total = float(total)
    except (TypeError, ValueError):
        raise ValueError('installmentCount and totalAmount must be numbers')
    return count, total, parse_date(first_due)


def regenerate_licence_payments(licence, count, total, first_due):
    """Replace the pending installments of a licence and record its total amount"""
    schedule = generate_installments(total, count, first_due)

    LicencePayment.query.filter_by(
        licence_id=licence.id, status=PaymentStatus.PENDING
    ).delete(synchronize_session=False)
    db.session.expire(licence, ['payments'])

    payments = []
    for number, amount, due_date in schedule:
        payment = LicencePayment(
            licence_id=licence.id,
            installment=number,
            amount=amount,
            due_date=due_date,
            status=PaymentStatus.PENDING
        )
        db.session.add(payment)
        payments.append(payment)

    licence.total_amount = total
    return payments


def create_stage_payments(participant, count, total, first_due):
    schedule = generate_installments(total, count, first_due)
    payments = []
    for number, amount, due_date in schedule:
        payment = StagePayment(
            installment=number,
            amount=amount,
            due_date=due_date,
            status=PaymentStatus.PENDING
        )
        participant.payments.append(payment)
        payments.append(payment)
    return payments


def next_installment_number(payments):
    return max((p.installment for p in payments), default=0) + 1


def apply_payment_update(payment, data):
    """
    Apply a partial update to a licence or stage installment.

    Raises:
        ValueError: on an invalid status, amount or date
    """
    if 'status' in data:
        payment.status = parse_enum(PaymentStatus, data['status'])
    if 'paidDate' in data:
        payment.paid_date = parse_date(data['paidDate']) if data['paidDate'] else None
    if 'amount' in data:
        try:
            payment.amount = float(data['amount'])
        except (TypeError, ValueError):
            raise ValueError('amount must be a number')
    if 'dueDate' in data:
        payment.due_date = parse_date(data['dueDate'])
    for field in payment.PAYMENT_FIELDS:
        if field in data:
            setattr(payment, field, data[field])
    if payment.status == PaymentStatus.PAID and payment.paid_date is None:
        payment.paid_date = local_now().date()
    return payment


def new_manual_payment(payment_cls, payments, data):
    """
    Build a single installment from a request body.
    The installment number defaults to the next free one.

    Raises:
        ValueError: if amount or dueDate is missing or malformed
    """
    if data.get('amount') in (None, '') or not data.get('dueDate'):
        raise ValueError('amount and dueDate are required')
    try:
        amount = float(data['amount'])
        installment = int(data['installment']) if data.get('installment') else next_installment_number(payments)
    except (TypeError, ValueError):
        raise ValueError('amount and installment must be numbers')

    payment = payment_cls(
        installment=installment,
        amount=amount,
        due_date=parse_date(data['dueDate']),
        status=parse_enum(PaymentStatus, data['status']) if data.get('status') else PaymentStatus.PENDING
    )
    if data.get('paidDate'):
        payment.paid_date = parse_date(data['paidDate'])
    for field in payment.PAYMENT_FIELDS:
        if field in data:
            setattr(payment, field, data[field])
    return payment
