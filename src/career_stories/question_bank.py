"""
Static D-I-G question bank.

Six canonical questions per archetype (3 dig, 2 impact, 1 growth), used
when dynamic generation is unavailable. Ids follow "{prefix}-{phase}-{n}".
"""

from typing import Dict, List, Tuple

from src.career_stories.types import QuestionOption, StoryArchetype

# (id, phase, question, hint)
BankEntry = Tuple[str, str, str, str]

QUESTION_BANK: Dict[StoryArchetype, List[BankEntry]] = {
    StoryArchetype.FIREFIGHTER: [
        ("ff-dig-1", "dig", "What was the moment you realized something was wrong?",
         "Think about where you were, what time it was, what you saw."),
        ("ff-dig-2", "dig", "Who did you call first? What did you say to them?",
         "Give me their name and role."),
        ("ff-dig-3", "dig", "What was the hardest part of fixing this?",
         "What dead ends did you hit? What almost didn't work?"),
        ("ff-impact-1", "impact", "What would have happened if you hadn't caught this?",
         "Be specific - customers affected, money lost, reputation damage?"),
        ("ff-impact-2", "impact", "What's the number that proves you succeeded?",
         "Time saved? Incidents prevented? Money saved? Users protected?"),
        ("ff-growth-1", "growth", "What changed because of this? New process? Runbook? Alert?",
         "Is it still in use today?"),
    ],
    StoryArchetype.ARCHITECT: [
        ("ar-dig-1", "dig", "What did you see that others didn't?",
         "Why was NOW the right time to act?"),
        ("ar-dig-2", "dig", "What was the hardest trade-off you had to make?",
         "What did you give up? What did you get in return?"),
        ("ar-dig-3", "dig", "Who pushed back on your design? How did you handle it?",
         "Give me a name and what their concern was."),
        ("ar-impact-1", "impact", "Who uses this today? How many teams or people?",
         "Is it still the foundation?"),
        ("ar-impact-2", "impact", "What became possible because of your architecture?",
         "What couldn't they do before that they can do now?"),
        ("ar-growth-1", "growth", "What would you design differently if you started today?",
         "What did you learn from building this?"),
    ],
    StoryArchetype.DIPLOMAT: [
        ("di-dig-1", "dig", "Who wanted what? Walk me through the conflict.",
         "Name the people or teams and what they were fighting for."),
        ("di-dig-2", "dig", "What was really at stake for each side?",
         "Not their stated position - their actual fear or need."),
        ("di-dig-3", "dig", "What did you learn by listening that others had missed?",
         "The insight that unlocked the solution."),
        ("di-impact-1", "impact", "What became possible after you got alignment?",
         "What was blocked before that could move forward?"),
        ("di-impact-2", "impact", "How long did the alignment last? Is it still holding?",
         "Did it create lasting change or temporary peace?"),
        ("di-growth-1", "growth", "What did you learn about influence that you didn't know before?",
         "How do you approach similar situations now?"),
    ],
    StoryArchetype.MULTIPLIER: [
        ("mu-dig-1", "dig", "What were people struggling with before you stepped in?",
         "Quantify the pain - time wasted, errors made, frustration level."),
        ("mu-dig-2", "dig", "What did you create that made things better?",
         "Framework? Template? Training? Tool?"),
        ("mu-dig-3", "dig", "How did it spread? Did you have to push it, or did people pull it?",
         "Who were the early adopters? Name them."),
        ("mu-impact-1", "impact", "How many people or teams use it now?",
         "Is it still in use? Has it grown?"),
        ("mu-impact-2", "impact", "What's the compound impact? Each person saves X, times how many?",
         "Help me understand the multiplication."),
        ("mu-growth-1", "growth", "What did you learn about creating things that get adopted?",
         "What makes something stick vs get ignored?"),
    ],
    StoryArchetype.DETECTIVE: [
        ("de-dig-1", "dig", "What was the mystery? What couldn't anyone explain?",
         "What made it hard to solve? Intermittent? No repro?"),
        ("de-dig-2", "dig", "Walk me through your investigation. What did you try first?",
         "Include the dead ends - they show rigor."),
        ("de-dig-3", "dig", "What was the breakthrough moment? What led you to the answer?",
         "The clue that cracked it."),
        ("de-impact-1", "impact", "What was the actual root cause? How surprising was it?",
         "Was it what people expected, or something else entirely?"),
        ("de-impact-2", "impact", "How many people were affected before you solved it?",
         "Users, customers, engineers - who was suffering?"),
        ("de-growth-1", "growth", "What debugging skill did you develop from this?",
         "How do you approach similar mysteries now?"),
    ],
    StoryArchetype.PIONEER: [
        ("pi-dig-1", "dig", "What made this genuinely unknown territory?",
         "No docs? New tech? Nobody had done it before?"),
        ("pi-dig-2", "dig", "What did you try that didn't work?",
         "Pioneers fail a lot before succeeding."),
        ("pi-dig-3", "dig", "How did you learn without documentation or guidance?",
         "Reverse engineering? Experimentation? Asking strangers?"),
        ("pi-impact-1", "impact", "What trail did you leave for others?",
         "Documentation? Guide? Template? Training?"),
        ("pi-impact-2", "impact", "Who has followed your trail? How many?",
         "Did your exploration help others?"),
        ("pi-growth-1", "growth", "What surprised you most about the new territory?",
         "What do you know now that you couldn't have guessed?"),
    ],
    StoryArchetype.TURNAROUND: [
        ("tu-dig-1", "dig", "How bad was it when you arrived? Give me the numbers.",
         "Incidents per week? Days behind? Test coverage? Morale?"),
        ("tu-dig-2", "dig", "What did you identify as the real problem?",
         "Not the symptoms - the root cause of the mess."),
        ("tu-dig-3", "dig", "What was your first move? What did you prioritize?",
         "You couldn't fix everything - what came first?"),
        ("tu-impact-1", "impact", "What are the numbers now? Give me before and after.",
         "Same metrics you mentioned before - what changed?"),
        ("tu-impact-2", "impact", "How long did the turnaround take?",
         "When did you know it was working?"),
        ("tu-growth-1", "growth", "What did you learn about turning things around?",
         "What would you do faster next time?"),
    ],
    StoryArchetype.PREVENTER: [
        ("pr-dig-1", "dig", "What did you notice that others didn't?",
         "What pattern or risk caught your attention?"),
        ("pr-dig-2", "dig", "How did you know it was a real risk, not paranoia?",
         "What evidence did you gather?"),
        ("pr-dig-3", "dig", "How did you raise the alarm? Who did you convince?",
         "Was there resistance? How did you overcome it?"),
        ("pr-impact-1", "impact", "What would have happened if you hadn't caught this?",
         "Paint the picture of the disaster that didn't happen."),
        ("pr-impact-2", "impact", "What changed because of your warning?",
         "New process? Fix deployed? Policy changed?"),
        ("pr-growth-1", "growth", "What makes you good at seeing risks others miss?",
         "Is it experience? Paranoia? Process? Intuition?"),
    ],
}

# Choice lists attached to dig-1 and impact-1 questions
DISCOVERY_METHODS: List[QuestionOption] = [
    QuestionOption("Got paged/alerted", "paged"),
    QuestionOption("Customer reported", "customer_report"),
    QuestionOption("Found in testing", "testing"),
    QuestionOption("Noticed something off", "intuition"),
    QuestionOption("Code review", "review"),
]

IMPACT_TYPES: List[QuestionOption] = [
    QuestionOption("Revenue/money at risk", "revenue_risk"),
    QuestionOption("Customer impact", "customer_impact"),
    QuestionOption("System outage", "outage"),
    QuestionOption("Reputation damage", "reputation"),
    QuestionOption("Missed deadline", "deadline"),
]

# Padding used when a question set comes back short: (phase, question, hint)
FALLBACK_QUESTIONS: List[Tuple[str, str, str]] = [
    ("dig", "What was the biggest obstacle you faced?", "Describe the moment it went wrong."),
    ("impact", "What would have happened if you hadn't been involved?", "Estimate the cost or consequence."),
    ("growth", "What specific metric proves this was successful?", "Give me the number."),
]
