import random
from dataclasses import dataclass
from datetime import datetime, timezone

TOPICS = [
    "love", "relationships", "marriage", "faith", "trust", "patience",
    "forgiveness", "wisdom", "guidance", "hope", "commitment", "purity",
    "communication", "understanding", "respect", "honor", "devotion", "unity",
]


@dataclass(frozen=True)
class CatalogVerse:
    verse: str
    reference: str
    topic: str


BIBLICAL_VERSES = [
    CatalogVerse("Above all else, guard your heart, for everything you do flows from it.", "Proverbs 4:23", "love"),
    CatalogVerse("Two are better than one, because they have a good return for their labor.", "Ecclesiastes 4:9", "relationships"),
    CatalogVerse("Therefore what God has joined together, let no one separate.", "Mark 10:9", "marriage"),
    CatalogVerse("Love is patient, love is kind. It does not envy, it does not boast, it is not proud.", "1 Corinthians 13:4", "love"),
    CatalogVerse("Trust in the Lord with all your heart and lean not on your own understanding.", "Proverbs 3:5", "trust"),
    CatalogVerse("Be completely humble and gentle; be patient, bearing with one another in love.", "Ephesians 4:2", "patience"),
    CatalogVerse("If we confess our sins, he is faithful and just and will forgive us our sins.", "1 John 1:9", "forgiveness"),
    CatalogVerse("If any of you lacks wisdom, you should ask God, who gives generously to all.", "James 1:5", "wisdom"),
    CatalogVerse("For I know the plans I have for you, declares the Lord, plans to prosper you.", "Jeremiah 29:11", "guidance"),
    CatalogVerse("And we know that in all things God works for the good of those who love him.", "Romans 8:28", "hope"),
    CatalogVerse("Husbands, love your wives, just as Christ loved the church.", "Ephesians 5:25", "marriage"),
    CatalogVerse("A friend loves at all times, and a brother is born for a time of adversity.", "Proverbs 17:17", "relationships"),
    CatalogVerse("Let all that you do be done in love.", "1 Corinthians 16:14", "love"),
    CatalogVerse("Be kind to one another, tenderhearted, forgiving one another.", "Ephesians 4:32", "forgiveness"),
    CatalogVerse("The heart of man plans his way, but the Lord establishes his steps.", "Proverbs 16:9", "guidance"),
]

REFLECTIONS = [
    "In the context of {topic}, this verse reminds us that God's design for relationships requires us to center our hearts on Him first. When we guard our hearts according to Scripture, we create space for healthy, God-honoring connections.",
    "As we navigate dating and relationships, {topic} becomes our compass. This scripture encourages us to approach every interaction with intentionality, seeking God's wisdom in all we do.",
    "Biblical dating means allowing {topic} to shape our choices. This verse calls us to higher standards - not just finding someone who makes us happy, but someone who helps us grow closer to Christ.",
    "God's word teaches that {topic} is foundational to lasting love. In our journey toward marriage, let this verse guide how we treat others and ourselves with dignity and respect.",
    "True {topic} in relationships reflects God's character. This scripture reminds us that our dating lives should be testimonies of Christ's love - patient, kind, and selfless.",
    "When we practice {topic} in our relationships, we honor the One who designed love itself. May this verse inspire you to seek relationships that glorify God and build His kingdom.",
    "Dating with {topic} means trusting God's timing and plan. This verse encourages us to wait well, grow in faith, and prepare our hearts for the spouse God may have for us.",
    "In a culture that often misunderstands love, {topic} anchored in Scripture sets us apart. Let this verse be a beacon as you pursue relationships that reflect Christ's love for the church.",
]


@dataclass(frozen=True)
class GeneratedVerse:
    verse: str
    reference: str
    reflection: str
    topic: str


def generate_ai_verse(topic: str | None = None, rng: random.Random | None = None) -> GeneratedVerse:
    rng = rng or random.Random()
    selected_topic = topic or rng.choice(TOPICS)

    relevant = [v for v in BIBLICAL_VERSES if v.topic == selected_topic]
    chosen = rng.choice(relevant or BIBLICAL_VERSES)
    reflection = rng.choice(REFLECTIONS).format(topic=selected_topic)

    return GeneratedVerse(
        verse=chosen.verse,
        reference=chosen.reference,
        reflection=reflection,
        topic=selected_topic,
    )


def today_key(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%d")


def minute_key(now: datetime | None = None, *, manual: bool = False) -> str:
    """'{date}-{minutes since epoch}', so a fresh verse is due every minute."""
    now = now or datetime.now(timezone.utc)
    key = f"{today_key(now)}-{int(now.timestamp() // 60)}"
    return f"{key}-manual" if manual else key
