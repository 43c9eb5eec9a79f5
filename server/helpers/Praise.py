import random

# Shown once to a volunteer who has just completed an individual task.
PRAISE_TEMPLATES = (
    "{name}, you just made {org} proud today!",
    "{name}, your consistency makes {org} stronger each day.",
    "At {org}, we celebrate the effort you put in, {name}.",
    "Keep going, {name}. {org} is growing with you.",
    "{name}, every step you take lifts the whole {org} family.",
    "What a brilliant effort, {name}! {org} shines brighter now.",
    "{name}, your determination is shaping the future of {org}.",
    "{org} feels your energy, {name}, and it is inspiring.",
    "Fantastic work, {name}! This is how {org} gets things done.",
    "You did it, {name}! {org} moves forward because of people like you.",
    "Amazing job, {name}. The road ahead for {org} is brighter with you.",
    "{name}, the discipline you show lifts {org} higher.",
    "Outstanding spirit, {name}. {org} applauds your hard work.",
    "Cheers to you, {name}! {org} celebrates this win.",
    "Incredible progress, {name}. You are making {org} stronger.",
    "With this task done, {name}, you have raised the bar at {org}.",
    "{name}, your effort today builds the {org} of tomorrow.",
    "What a milestone, {name}! {org} grows because of you.",
    "{name}, the passion you bring is the real strength of {org}.",
    "Spectacular work, {name}. {org} stands taller today.",
    "Keep shining, {name}. {org} is proud of your spirit.",
    "{name}, you have turned effort into inspiration for {org}.",
    "Well done, {name}! {org} thrives on dedication like yours.",
    "The story of {org} would not be complete without you, {name}.",
    "Superb, {name}! This win belongs to you and {org}.",
    "{name}, you have just set another example for {org}.",
    "Brilliant achievement, {name}. {org} celebrates your success.",
    "Hats off, {name}! Your perseverance powers {org} forward.",
    "{name}, this is not just a task done, it is {org} history in the making.",
    "Legendary effort, {name}. You have written another proud page for {org}.",
)


def pick_praise(name: str, org: str, rng: random.Random = None) -> str:
    """Pick one congratulatory message for the given volunteer name."""
    chooser = rng or random
    template = chooser.choice(PRAISE_TEMPLATES)
    return template.format(name=name or "Volunteer", org=org)
