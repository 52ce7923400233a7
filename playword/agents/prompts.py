CLASSIFY_ACTION = """Decide which kind of request the user input is. Answer with exactly one type:
- "assertion": the user wants to check or verify something about the page or one of its elements.
- "operation": the user wants the browser to do something, such as clicking, typing, navigating, scrolling or waiting.
- "query": the user wants information taken from the page, such as a text, an attribute value or what a screenshot shows."""

TOOL_CALL = """Call the provided tools to carry out every action the input asks for, in the order it asks for them.
Use the user's own words as search keywords when a tool needs to find an element."""

CANDIDATE_LIST_REFERENCE = """You are given a user input and a numbered list of HTML elements taken from a web page.
Pick the element the user input refers to and answer with its index."""

SUMMARIZE_HTML = """You are given the HTML of a single element the user interacted with.
Describe the element in a short noun phrase that a tester could use to find it again, for example
'the "Sign in" button' or 'the search input'.
- Prefer visible text, then meaningful attributes such as name, placeholder, aria-label or title.
- Ignore attributes that look random or generated (hashed class names, numeric ids, session data).
- Never include passwords or other secrets."""

ANALYZE_IMAGE = """You are given a screenshot of a web page and a user input.
Read the screenshot and return only the information the user input asks for, with no extra text."""
