"""
State income tax lookup table (2024 tax year, simplified).

Every state is described by data only; the tax service runs the same bracket
algorithm it uses for federal tax over these schedules.

Brackets are (Lower Limit, Rate) tuples, same as the federal tables.
`married_jointly` schedules are listed only where they differ from `single`;
married-separately and head-of-household filers use the single schedule.
Deductions and exemptions are (single, married_jointly) amounts.

Local/city taxes, credits, phase-outs and surtaxes are not modeled.
"""


def _none(name):
    return {"name": name, "type": "none"}


def _flat(name, rate, deduction=(0, 0), exemption=(0, 0)):
    return {
        "name": name,
        "type": "flat",
        "brackets": {"single": [(0, rate)]},
        "standard_deduction": {"single": deduction[0], "married_jointly": deduction[1]},
        "personal_exemption": {"single": exemption[0], "married_jointly": exemption[1]},
    }


def _progressive(name, single, joint=None, deduction=(0, 0), exemption=(0, 0)):
    brackets = {"single": single}
    if joint:
        brackets["married_jointly"] = joint
    return {
        "name": name,
        "type": "progressive",
        "brackets": brackets,
        "standard_deduction": {"single": deduction[0], "married_jointly": deduction[1]},
        "personal_exemption": {"single": exemption[0], "married_jointly": exemption[1]},
    }


FEDERAL_DEDUCTION = (14600, 29200)

STATE_TAX_TABLE = {
    "AL": _progressive(
        "Alabama",
        [(0, 0.02), (500, 0.04), (3000, 0.05)],
        [(0, 0.02), (1000, 0.04), (6000, 0.05)],
        deduction=(3000, 8500), exemption=(1500, 3000),
    ),
    "AK": _none("Alaska"),
    "AZ": _flat("Arizona", 0.025, deduction=FEDERAL_DEDUCTION),
    "AR": _progressive(
        "Arkansas",
        [(0, 0.0), (5100, 0.02), (10300, 0.03), (14700, 0.034), (24300, 0.039)],
        deduction=(2340, 4680),
    ),
    "CA": _progressive(
        "California",
        [(0, 0.01), (10756, 0.02), (25499, 0.04), (40245, 0.06), (55866, 0.08),
         (70606, 0.093), (360659, 0.103), (432787, 0.113), (721314, 0.123)],
        [(0, 0.01), (21512, 0.02), (50998, 0.04), (80490, 0.06), (111732, 0.08),
         (141212, 0.093), (721318, 0.103), (865574, 0.113), (1442628, 0.123)],
        deduction=(5540, 11080),
    ),
    "CO": _flat("Colorado", 0.0425, deduction=FEDERAL_DEDUCTION),
    "CT": _progressive(
        "Connecticut",
        [(0, 0.02), (10000, 0.045), (50000, 0.055), (100000, 0.06),
         (200000, 0.065), (250000, 0.069), (500000, 0.0699)],
        [(0, 0.02), (20000, 0.045), (100000, 0.055), (200000, 0.06),
         (400000, 0.065), (500000, 0.069), (1000000, 0.0699)],
        exemption=(15000, 24000),
    ),
    "DE": _progressive(
        "Delaware",
        [(0, 0.0), (2000, 0.022), (5000, 0.039), (10000, 0.048),
         (20000, 0.052), (25000, 0.0555), (60000, 0.066)],
        deduction=(3250, 6500),
    ),
    "DC": _progressive(
        "District of Columbia",
        [(0, 0.04), (10000, 0.06), (40000, 0.065), (60000, 0.085),
         (250000, 0.0925), (500000, 0.0975), (1000000, 0.1075)],
        deduction=FEDERAL_DEDUCTION,
    ),
    "FL": _none("Florida"),
    "GA": _flat("Georgia", 0.0539, deduction=(12000, 24000)),
    "HI": _progressive(
        "Hawaii",
        [(0, 0.014), (2400, 0.032), (4800, 0.055), (9600, 0.064), (14400, 0.068),
         (19200, 0.072), (24000, 0.076), (36000, 0.079), (48000, 0.0825),
         (150000, 0.09), (175000, 0.10), (200000, 0.11)],
        [(0, 0.014), (4800, 0.032), (9600, 0.055), (19200, 0.064), (28800, 0.068),
         (38400, 0.072), (48000, 0.076), (72000, 0.079), (96000, 0.0825),
         (300000, 0.09), (350000, 0.10), (400000, 0.11)],
        deduction=(2200, 4400), exemption=(1144, 2288),
    ),
    "ID": _flat("Idaho", 0.05695, deduction=FEDERAL_DEDUCTION),
    "IL": _flat("Illinois", 0.0495, exemption=(2775, 5550)),
    "IN": _flat("Indiana", 0.0305, exemption=(1000, 2000)),
    "IA": _progressive(
        "Iowa",
        [(0, 0.044), (6210, 0.0482), (31050, 0.057)],
        [(0, 0.044), (12420, 0.0482), (62100, 0.057)],
        deduction=FEDERAL_DEDUCTION,
    ),
    "KS": _progressive(
        "Kansas",
        [(0, 0.052), (23000, 0.0558)],
        [(0, 0.052), (46000, 0.0558)],
        deduction=(3605, 8240), exemption=(9160, 18320),
    ),
    "KY": _flat("Kentucky", 0.04, deduction=(3160, 6320)),
    "LA": _progressive(
        "Louisiana",
        [(0, 0.0185), (12500, 0.035), (50000, 0.0425)],
        [(0, 0.0185), (25000, 0.035), (100000, 0.0425)],
        exemption=(4500, 9000),
    ),
    "ME": _progressive(
        "Maine",
        [(0, 0.058), (26050, 0.0675), (61600, 0.0715)],
        [(0, 0.058), (52100, 0.0675), (123250, 0.0715)],
        deduction=FEDERAL_DEDUCTION, exemption=(5000, 10000),
    ),
    "MD": _progressive(
        "Maryland",
        [(0, 0.02), (1000, 0.03), (2000, 0.04), (3000, 0.0475),
         (100000, 0.05), (125000, 0.0525), (150000, 0.055), (250000, 0.0575)],
        [(0, 0.02), (1000, 0.03), (2000, 0.04), (3000, 0.0475),
         (150000, 0.05), (175000, 0.0525), (225000, 0.055), (300000, 0.0575)],
        deduction=(2550, 5150), exemption=(3200, 6400),
    ),
    "MA": _flat("Massachusetts", 0.05, exemption=(4400, 8800)),
    "MI": _flat("Michigan", 0.0425, exemption=(5600, 11200)),
    "MN": _progressive(
        "Minnesota",
        [(0, 0.0535), (31690, 0.068), (104090, 0.0785), (193240, 0.0985)],
        [(0, 0.0535), (46330, 0.068), (184040, 0.0785), (321450, 0.0985)],
        deduction=(14575, 29150),
    ),
    "MS": _progressive(
        "Mississippi",
        [(0, 0.0), (10000, 0.047)],
        deduction=(2300, 4600), exemption=(6000, 12000),
    ),
    "MO": _progressive(
        "Missouri",
        [(0, 0.0), (1273, 0.02), (2546, 0.025), (3819, 0.03), (5092, 0.035),
         (6365, 0.04), (7638, 0.045), (8911, 0.048)],
        deduction=FEDERAL_DEDUCTION,
    ),
    "MT": _progressive(
        "Montana",
        [(0, 0.047), (20500, 0.059)],
        [(0, 0.047), (41000, 0.059)],
        deduction=FEDERAL_DEDUCTION,
    ),
    "NE": _progressive(
        "Nebraska",
        [(0, 0.0246), (3900, 0.0351), (23370, 0.0501), (37670, 0.0584)],
        [(0, 0.0246), (7790, 0.0351), (46750, 0.0501), (75340, 0.0584)],
        deduction=(8300, 16600),
    ),
    "NV": _none("Nevada"),
    "NH": _none("New Hampshire"),
    "NJ": _progressive(
        "New Jersey",
        [(0, 0.014), (20000, 0.0175), (35000, 0.035), (40000, 0.05525),
         (75000, 0.0637), (500000, 0.0897), (1000000, 0.1075)],
        [(0, 0.014), (20000, 0.0175), (50000, 0.0245), (70000, 0.035),
         (80000, 0.05525), (150000, 0.0637), (500000, 0.0897), (1000000, 0.1075)],
        exemption=(1000, 2000),
    ),
    "NM": _progressive(
        "New Mexico",
        [(0, 0.017), (5500, 0.032), (11000, 0.047), (16000, 0.049), (210000, 0.059)],
        [(0, 0.017), (8000, 0.032), (16000, 0.047), (24000, 0.049), (315000, 0.059)],
        deduction=FEDERAL_DEDUCTION,
    ),
    "NY": _progressive(
        "New York",
        [(0, 0.04), (8500, 0.045), (11700, 0.0525), (13900, 0.055), (80650, 0.06),
         (215400, 0.0685), (1077550, 0.0965), (5000000, 0.103), (25000000, 0.109)],
        [(0, 0.04), (17150, 0.045), (23600, 0.0525), (27900, 0.055), (161550, 0.06),
         (323200, 0.0685), (2155350, 0.0965), (5000000, 0.103), (25000000, 0.109)],
        deduction=(8000, 16050),
    ),
    "NC": _flat("North Carolina", 0.045, deduction=(12750, 25500)),
    "ND": _progressive(
        "North Dakota",
        [(0, 0.0), (47150, 0.0195), (238200, 0.025)],
        [(0, 0.0), (78775, 0.0195), (289975, 0.025)],
        deduction=FEDERAL_DEDUCTION,
    ),
    "OH": _progressive(
        "Ohio",
        [(0, 0.0), (26050, 0.0275), (100000, 0.035)],
        exemption=(2400, 4800),
    ),
    "OK": _progressive(
        "Oklahoma",
        [(0, 0.0025), (1000, 0.0075), (2500, 0.0175), (3750, 0.0275),
         (4900, 0.0375), (7200, 0.0475)],
        [(0, 0.0025), (2000, 0.0075), (5000, 0.0175), (7500, 0.0275),
         (9800, 0.0375), (14400, 0.0475)],
        deduction=(6350, 12700), exemption=(1000, 2000),
    ),
    "OR": _progressive(
        "Oregon",
        [(0, 0.0475), (4300, 0.0675), (10750, 0.0875), (125000, 0.099)],
        [(0, 0.0475), (8600, 0.0675), (21500, 0.0875), (250000, 0.099)],
        deduction=(2745, 5495),
    ),
    "PA": _flat("Pennsylvania", 0.0307),
    "RI": _progressive(
        "Rhode Island",
        [(0, 0.0375), (77450, 0.0475), (176050, 0.0599)],
        deduction=(10550, 21150), exemption=(4950, 9900),
    ),
    "SC": _progressive(
        "South Carolina",
        [(0, 0.0), (3460, 0.03), (17330, 0.062)],
        deduction=FEDERAL_DEDUCTION,
    ),
    "SD": _none("South Dakota"),
    "TN": _none("Tennessee"),
    "TX": _none("Texas"),
    "UT": _flat("Utah", 0.0455),
    "VT": _progressive(
        "Vermont",
        [(0, 0.0335), (45400, 0.066), (110050, 0.076), (229550, 0.0875)],
        [(0, 0.0335), (75850, 0.066), (183400, 0.076), (279450, 0.0875)],
        deduction=(7400, 14850), exemption=(4850, 9700),
    ),
    "VA": _progressive(
        "Virginia",
        [(0, 0.02), (3000, 0.03), (5000, 0.05), (17000, 0.0575)],
        deduction=(8500, 17000), exemption=(930, 1860),
    ),
    "WA": _none("Washington"),
    "WV": _progressive(
        "West Virginia",
        [(0, 0.0236), (10000, 0.0315), (25000, 0.0354), (40000, 0.0472), (60000, 0.0512)],
        exemption=(2000, 4000),
    ),
    "WI": _progressive(
        "Wisconsin",
        [(0, 0.035), (14320, 0.044), (28640, 0.053), (315310, 0.0765)],
        [(0, 0.035), (19090, 0.044), (38190, 0.053), (420420, 0.0765)],
        deduction=(13230, 24490), exemption=(700, 1400),
    ),
    "WY": _none("Wyoming"),
}
