"""Prompt injection detection for free text that ends up inside LLM prompts"""
from typing import List, Tuple


class PromptInjectionDetector:
    """Detect and neutralise prompt injection attempts in trip fields"""

    # Phrases that try to override the generator's instructions
    INJECTION_PATTERNS = [
        'ignore previous instructions',
        'ignore all previous',
        'ignore the above',
        'disregard',
        'new instructions',

        # Role manipulation
        'system:',
        'assistant:',
        'user:',
        'human:',

        # Special tokens
        '<|im_start|>',
        '<|im_end|>',
        '<|endoftext|>',
        '[INST]',
        '[/INST]',

        # Markdown that would break the prompt's section layout
        '###',
        '```',
        '---',

        'you are now',
        'pretend to be',
    ]

    # Markup and code fragments that never appear in a place name
    PLACE_INJECTION_PATTERNS = [
        '<script',
        'javascript:',
        'eval(',
        'exec(',
        '/*',
        '*/',
        '<!--',
        '-->',
        '<?',
        '?>',
        '{',
        '}',
    ]

    @classmethod
    def detect_injection(cls, text: str, check_place: bool = False) -> Tuple[bool, List[str]]:
        """
        Detect potential prompt injection in text

        Args:
            text: Text to check
            check_place: Also check for markup/code fragments (destinations, regions)

        Returns:
            Tuple of (is_safe, detected_patterns)
        """
        if not text:
            return True, []

        text_lower = text.lower()
        patterns = list(cls.INJECTION_PATTERNS)
        if check_place:
            patterns.extend(cls.PLACE_INJECTION_PATTERNS)

        detected = [p for p in patterns if p.lower() in text_lower]
        return len(detected) == 0, detected

    @classmethod
    def sanitize_text(cls, text: str, max_length: int = 500) -> str:
        """
        Strip control characters, collapse whitespace and trim to max_length
        """
        if not text:
            return ""

        text = text[:max_length]
        text = ''.join(c for c in text if c.isprintable() or c.isspace())
        text = ' '.join(text.split())

        return text.strip()
