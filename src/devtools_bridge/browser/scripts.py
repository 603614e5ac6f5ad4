"""JavaScript expressions evaluated in the page through ``Runtime.evaluate``.

Every expression returns a JSON string so results survive
``returnByValue`` unchanged.
"""
import json

PAGE_TEXT = "document.body.innerText"
PAGE_HTML = "document.documentElement.outerHTML"

SCROLL_SNAPSHOT = """JSON.stringify({
    scrollX: window.scrollX,
    scrollY: window.scrollY,
    width: window.innerWidth,
    height: window.innerHeight
})"""

SCROLL_POSITION = "JSON.stringify({ scrollX: window.scrollX, scrollY: window.scrollY })"

CANVAS_CENTER = """(() => {
    const canvas = document.querySelector('canvas');
    if (canvas) {
        const rect = canvas.getBoundingClientRect();
        return JSON.stringify({
            found: true,
            x: Math.floor(rect.left + rect.width / 2),
            y: Math.floor(rect.top + rect.height / 2)
        });
    }
    return JSON.stringify({
        found: false,
        x: Math.floor(window.innerWidth / 2),
        y: Math.floor(window.innerHeight / 2)
    });
})()"""


def build_dom_scroll_script(direction: str, amount: int) -> str:
    """Build the DOM-level scroll fallback.

    Scans every element for overflow ``auto``/``scroll`` with real overflow
    in the requested axis, tries them largest visible area first, and falls
    back to ``window.scrollBy``. Returns ``{"success", "element"}`` where
    ``element`` is a class name, tag name or ``"window"``. Candidates with
    equal area keep document order (``Array.prototype.sort`` is stable).
    """
    direction_js = json.dumps(direction)
    amount_js = json.dumps(amount)
    return f"""
    (() => {{
        const direction = {direction_js};
        const amount = {amount_js};
        const vertical = direction === 'up' || direction === 'down';
        const sign = (direction === 'down' || direction === 'right') ? 1 : -1;
        const label = (el) => (typeof el.className === 'string' && el.className) || el.tagName;

        const candidates = [];
        for (const el of document.querySelectorAll('*')) {{
            const style = getComputedStyle(el);
            const overflow = vertical ? style.overflowY : style.overflowX;
            if (overflow !== 'auto' && overflow !== 'scroll') continue;
            const overflowing = vertical
                ? el.scrollHeight > el.clientHeight
                : el.scrollWidth > el.clientWidth;
            if (!overflowing) continue;
            candidates.push({{ el: el, area: el.clientWidth * el.clientHeight }});
        }}
        candidates.sort((a, b) => b.area - a.area);

        for (const item of candidates) {{
            const el = item.el;
            if (vertical) {{
                const before = el.scrollTop;
                el.scrollTop += sign * amount;
                if (el.scrollTop !== before) {{
                    return JSON.stringify({{ success: true, element: label(el) }});
                }}
            }} else {{
                const before = el.scrollLeft;
                el.scrollLeft += sign * amount;
                if (el.scrollLeft !== before) {{
                    return JSON.stringify({{ success: true, element: label(el) }});
                }}
            }}
        }}

        const beforeX = window.scrollX;
        const beforeY = window.scrollY;
        if (vertical) window.scrollBy(0, sign * amount);
        else window.scrollBy(sign * amount, 0);
        if (window.scrollX !== beforeX || window.scrollY !== beforeY) {{
            return JSON.stringify({{ success: true, element: 'window' }});
        }}
        return JSON.stringify({{ success: false, element: null }});
    }})()
    """
