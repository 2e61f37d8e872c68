"""
Keyword rules for a first-guess category when nothing has been learned yet.

Rules are checked top to bottom and the first hit wins, so the order
matters: Transport is checked before Housing so that "car rental" is not
read as rent, and Bills & Utilities before Shopping so that "amazon prime"
is a subscription rather than a purchase. Short or ambiguous tokens use word
boundaries ("bus" must not match "business").
"""
import re

_RULES: tuple[tuple[str, str], ...] = (
    ("Transport", r"\buber\b(?!\s*eats)|\blyft\b|\btaxi\b|\bcab\b|\bbus\b|\btrain\b|\bmetro\b|\btram\b|\btransit\b"),
    ("Transport", r"\bgas station\b|\bgas\b(?!\s*bill)|\bgasoline\b|\bfuel\b|\bshell\b|\bchevron\b|\bexxon\b|\bbp\b|\bpetrol\b"),
    ("Transport", r"parking|\btolls?\b|ezpass|fastrak|metrocard"),
    ("Transport", r"car rental|\benterprise\b|\bhertz\b|\bavis\b|\bzipcar\b"),
    ("Housing", r"\brent\b|landlord|mortgage|\bhoa\b|property tax|home insurance|maintenance|repair"),
    ("Food & Drink", r"grocery|supermarket|\bmarket\b|whole foods|trader joe|safeway|kroger"),
    ("Food & Drink", r"coffee|\bcafe\b|starbucks|dunkin|peet'?s|caribou|tim hortons"),
    ("Food & Drink", r"restaurant|dinner|lunch|breakfast|\bfood\b|takeout|delivery|doordash|uber\s*eats|grubhub"),
    ("Food & Drink", r"mcdonald|burger king|wendy'?s|taco bell|\bkfc\b|subway|chipotle|pizza"),
    ("Bills & Utilities", r"netflix|spotify|hulu|disney|\bmax\b|amazon prime|apple tv|youtube tv"),
    ("Bills & Utilities", r"electric|gas bill|\bwater\b|sewer|trash|recycling|utilit"),
    ("Bills & Utilities", r"internet|wifi|comcast|verizon|\bat&t\b|\batt\b|spectrum|\bcox\b"),
    ("Bills & Utilities", r"phone|mobile|cellular|wireless|t-mobile|sprint"),
    ("Bills & Utilities", r"insurance"),
    ("Wellness & Health", r"\bgym\b|fitness|yoga|crossfit"),
    ("Wellness & Health", r"clinic|hospital|doctor|dentist|pharmacy|\bcvs\b|walgreens|rite aid"),
    ("Wellness & Health", r"medical|health|wellness|therapy|chiropractor"),
    ("Shopping", r"amazon|\btarget\b|walmart|best buy|costco|sam'?s club|home depot|lowe'?s"),
    ("Shopping", r"clothing|apparel|\bnike\b|adidas|\bgap\b|old navy|h&m|\bzara\b"),
    ("Shopping", r"electronics|\bapple\b|samsung|\bsony\b|microsoft"),
    ("Shopping", r"furniture|ikea|wayfair|pottery barn"),
    ("Travel", r"flight|airline|southwest|\bdelta\b|jetblue"),
    ("Travel", r"hotel|marriott|hilton|holiday inn|airbnb|vrbo"),
    ("Travel", r"expedia|booking\.com|priceline|kayak"),
    ("Fun & Hobbies", r"movie|cinema|theat(?:er|re)|\bamc\b|regal|ticketmaster|eventbrite"),
    ("Fun & Hobbies", r"gaming|\bsteam\b|playstation|xbox|nintendo|epic games"),
    ("Fun & Hobbies", r"concert|festival|music"),
    ("Money & Finance", r"bank fee|atm fee|overdraft|interest charge|late fee"),
    ("Money & Finance", r"investment|\bstocks?\b|e\*?trade|fidelity|schwab|robinhood"),
    ("Money & Finance", r"\btax\b|\birs\b"),
    ("Education", r"tuition|college|university|school|education|coursera|udemy|skillshare"),
    ("Education", r"\bbooks?\b|textbook|library|\bcourse\b|\bclass\b|lesson"),
    ("Income", r"salary|payroll|paycheck|wages|commission|bonus|direct deposit"),
    ("Work", r"office supplies|business expense"),
    ("Account Transfer", r"transfer|payment to|cc payment|credit card payment|\bach\b"),
    ("Account Transfer", r"venmo|paypal|cash app|zelle"),
)

CATEGORY_RULES: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (category, re.compile(pattern)) for category, pattern in _RULES
)

KNOWN_CATEGORIES: tuple[str, ...] = tuple(dict.fromkeys(category for category, _ in _RULES))


def guess_category(description: str) -> str | None:
    text = description.lower()
    for category, pattern in CATEGORY_RULES:
        if pattern.search(text):
            return category
    return None
