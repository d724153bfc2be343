"""Style themes for emote prompts."""

# style -> (style phrase, extra art direction)
THEMES: dict[str, tuple[str, str]] = {
    "pixel": (
        "in a pixel art style",
        "The design should use a limited color palette and visible pixels, "
        "reminiscent of early video game graphics.",
    ),
    "kawaii": (
        "in a kawaii style",
        "The design should be ultra-cute with soft colors, simple shapes, "
        "and possibly blush marks on the cheeks.",
    ),
    "object": (
        "as an object",
        "The emote should represent a physical object with clear, simple lines "
        "and vibrant colors.",
    ),
    "cute-bold-line": (
        "with cute bold lines",
        "The design should feature bold, rounded lines that enhance the cuteness "
        "of the emote.",
    ),
    "text-based": (
        "as text-based",
        "The emote should primarily use stylized text or calligraphy to convey "
        "an expression or sentiment.",
    ),
    "3d-based": (
        "in a 3D style",
        "The emote should have a three-dimensional appearance, with detailed "
        "shading and lighting to enhance depth.",
    ),
    "pepe-based": (
        "in a Pepe style",
        "The emote should mimic the distinctive, somewhat crude art style of "
        "Pepe the Frog memes.",
    ),
    "sticker-based": (
        "as a sticker",
        "The emote should look like a sticker, possibly with a white border and "
        "shadow to give it a lifted effect.",
    ),
    "chibi": (
        "in a chibi style",
        "The character should have large, expressive eyes and a cute, simplified "
        "design with an oversized head and small body.",
    ),
    "meme": (
        "as a meme",
        "The emote should incorporate elements of popular memes, using humor and "
        "recognizable themes.",
    ),
    "ghibli": (
        "inspired by Studio Ghibli's art style",
        "The emote should have a whimsical, hand-drawn quality with soft edges "
        "and a slightly muted color palette.",
    ),
}

DEFAULT_THEME = (
    "with a unique style",
    "The design should be visually appealing and recognizable at a small scale.",
)


def build_themed_prompt(prompt: str, style: str) -> str:
    """Wrap the user's subject in the art direction for `style`."""
    style_phrase, details = THEMES.get(style.strip().lower(), DEFAULT_THEME)
    return (
        f"Design a single, expressive digital emote {style_phrase}, suitable for "
        f"use on a Twitch streamer's channel. The emote should depict {prompt}, "
        f"ensuring visibility and impact at a small scale. It should feature "
        f"exaggerated characteristics appropriate for {prompt}, conveying a "
        f"specific emotion or reaction. {details} with a solid white background."
    )
