# bloodstock/compat.py
from types import MappingProxyType

BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

# Red-cell compatibility chart.
# Key: donor group, value: the recipient groups it may be given to.
RECIPIENTS_BY_DONOR = MappingProxyType({
    "O-":  frozenset(BLOOD_GROUPS),
    "O+":  frozenset({"O+", "A+", "B+", "AB+"}),
    "A-":  frozenset({"A+", "A-", "AB+", "AB-"}),
    "A+":  frozenset({"A+", "AB+"}),
    "B-":  frozenset({"B+", "B-", "AB+", "AB-"}),
    "B+":  frozenset({"B+", "AB+"}),
    "AB-": frozenset({"AB+", "AB-"}),
    "AB+": frozenset({"AB+"}),
})

# Dispense priority per recipient: own group first, O- last
DONORS_BY_RECIPIENT = MappingProxyType({
    "O-":  ("O-",),
    "O+":  ("O+", "O-"),
    "A-":  ("A-", "O-"),
    "A+":  ("A+", "A-", "O+", "O-"),
    "B-":  ("B-", "O-"),
    "B+":  ("B+", "B-", "O+", "O-"),
    "AB-": ("AB-", "A-", "B-", "O-"),
    "AB+": ("AB+", "AB-", "A+", "A-", "B+", "B-", "O+", "O-"),
})


def is_compatible(recipient: str, donor: str, table=RECIPIENTS_BY_DONOR) -> bool:
    """True when blood of group `donor` may be given to `recipient`."""
    return recipient in table.get(donor, ())


def donors_for(recipient: str) -> tuple[str, ...]:
    return DONORS_BY_RECIPIENT.get(recipient, ())


def plan_dispense(requested_type: str, qty: int, inventory_counts: dict[str, int]) -> tuple[dict, int]:
    """
    Build a dispense plan: how many units to take from each compatible group
    to cover the requested quantity.
    :param requested_type: recipient blood group (e.g. "A+")
    :param qty: requested units (int >= 0)
    :param inventory_counts: {group: available units}
    :return: (plan_dict, shortfall)
             plan_dict: e.g. {"A+": 2, "O-": 1}
             shortfall: units that could not be covered (0 when complete)
    """
    plan = {}
    remaining = qty
    for donor_type in donors_for(requested_type):
        if remaining <= 0:
            break
        available = inventory_counts.get(donor_type, 0)
        if available <= 0:
            continue
        take = min(available, remaining)
        plan[donor_type] = take
        remaining -= take
    return plan, max(remaining, 0)
