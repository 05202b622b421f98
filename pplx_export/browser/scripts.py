"""Page-context JavaScript run through Playwright's page.evaluate.

Every script is a single function expression taking one argument object,
so selectors and limits are passed as data and never spliced into source.
"""

# =============================================================================
# Scrolling
# =============================================================================

# Shared prelude: nearest scrollable ancestor of the thread container
_SCROLL_ROOT = """
const findScrollRoot = (containerSelector) => {
  const container = document.querySelector(containerSelector);
  let node = container ? container.parentElement : null;
  while (node && node !== document.body) {
    const style = getComputedStyle(node);
    if (/(auto|scroll)/.test(style.overflowY) && node.scrollHeight > node.clientHeight) {
      return node;
    }
    node = node.parentElement;
  }
  return document.scrollingElement || document.documentElement;
};
"""

SCROLL_STATE = (
    "(args) => {"
    + _SCROLL_ROOT
    + """
  const root = findScrollRoot(args.container);
  return {top: root.scrollTop, client: root.clientHeight, height: root.scrollHeight};
}"""
)

SCROLL_TO = (
    "(args) => {"
    + _SCROLL_ROOT
    + """
  const root = findScrollRoot(args.container);
  root.scrollTop = args.edge === "bottom" ? root.scrollHeight : 0;
  return root.scrollTop;
}"""
)

PAGE_DOWN = (
    "(args) => {"
    + _SCROLL_ROOT
    + """
  const root = findScrollRoot(args.container);
  root.scrollTop = root.scrollTop + Math.max(1, root.clientHeight * args.factor);
  return root.scrollTop;
}"""
)


# =============================================================================
# Content
# =============================================================================

COLLECT_TURN_BLOCKS = """(args) => {
  const outermost = (selector) => {
    const nodes = Array.from(document.querySelectorAll(selector));
    return nodes.filter((n) => !nodes.some((o) => o !== n && o.contains(n)));
  };
  const offset = (el) => el.getBoundingClientRect().top + window.scrollY;
  const blocks = [];
  for (const el of outermost(args.user)) {
    const text = (el.innerText || el.textContent || "").trim();
    if (text) blocks.push({role: "User", markup: text, top: offset(el)});
  }
  for (const el of outermost(args.assistant)) {
    if ((el.textContent || "").trim()) {
      blocks.push({role: "Assistant", markup: el.outerHTML, top: offset(el)});
    }
  }
  blocks.sort((a, b) => a.top - b.top);
  return blocks;
}"""

PIN_CITATION_URLS = """(args) => {
  const found = new Set();
  const visit = (value, depth) => {
    if (!value || depth > 6) return;
    if (typeof value === "string") {
      if (/^https?:\\/\\//.test(value) && !value.includes("perplexity.ai")) found.add(value);
      return;
    }
    if (Array.isArray(value)) {
      value.forEach((v) => visit(v, depth + 1));
      return;
    }
    if (typeof value === "object") {
      for (const key of ["url", "href", "link", "sources", "citations", "web_results", "children"]) {
        if (key in value) visit(value[key], depth + 1);
      }
    }
  };
  let pinned = 0;
  for (const el of document.querySelectorAll(args.citation)) {
    if (el.hasAttribute(args.attr)) continue;
    found.clear();
    let node = el;
    for (let hops = 0; node && hops < 4; hops++, node = node.parentElement) {
      for (const key of Object.keys(node)) {
        if (key.startsWith("__reactProps$")) visit(node[key], 0);
        if (key.startsWith("__reactFiber$")) visit(node[key] && node[key].memoizedProps, 0);
      }
      if (found.size) break;
    }
    if (found.size) {
      el.setAttribute(args.attr, JSON.stringify(Array.from(found)));
      pinned += 1;
    }
  }
  return pinned;
}"""

CLICK_EXPANDERS = """(args) => {
  const pattern = new RegExp(args.pattern, "i");
  const candidates = document.querySelectorAll("button, [role='button'], a");
  let clicked = 0;
  for (const el of candidates) {
    if (clicked >= args.limit) break;
    if (el.closest("pre, code")) continue;
    if (el.tagName === "A") {
      const href = el.getAttribute("href") || "";
      if (href && !href.startsWith("#") && !href.startsWith("javascript:")) continue;
    }
    if (el.getAttribute("aria-expanded") === "true") continue;
    const label = ((el.innerText || "") + " " + (el.getAttribute("aria-label") || "")).trim();
    if (!label || label.length > 40 || !pattern.test(label)) continue;
    const rect = el.getBoundingClientRect();
    if (rect.width === 0 || rect.height === 0) continue;
    el.click();
    clicked += 1;
  }
  return clicked;
}"""

IS_DEEP_RESEARCH = """(args) => Boolean(document.querySelector(args.panel))"""

OPEN_RESEARCH_PANEL = """async (args) => {
  if (document.querySelector(args.panel + " .prose")) return true;
  const opener = Array.from(document.querySelectorAll("button, [role='button']"))
    .find((el) => /(view|open) (full )?report/i.test(el.innerText || ""));
  if (!opener) return Boolean(document.querySelector(args.panel));
  opener.click();
  await new Promise((r) => setTimeout(r, args.delay));
  return Boolean(document.querySelector(args.panel));
}"""


# =============================================================================
# Copy controls and clipboard
# =============================================================================

COLLECT_COPY_CONTROLS = """(args) => {
  const isCodeCopy = (btn) =>
    Boolean(btn.closest("pre")) ||
    Boolean(btn.closest("[class*='codeBlock'], [class*='code-block']")) ||
    Boolean(btn.parentElement && btn.parentElement.querySelector("pre, code"));
  const visible = (el) => {
    const r = el.getBoundingClientRect();
    return r.width > 0 && r.height > 0 && r.bottom > 0 && r.top < window.innerHeight;
  };
  let next = Number(window[args.counter] || 0);
  const controls = [];
  const add = (el, role) => {
    if (!visible(el) || isCodeCopy(el)) return;
    if (!el.hasAttribute(args.attr)) {
      next += 1;
      el.setAttribute(args.attr, "c" + next);
    }
    controls.push({
      id: el.getAttribute(args.attr),
      role,
      top: el.getBoundingClientRect().top + window.scrollY,
    });
  };
  document.querySelectorAll(args.query).forEach((el) => add(el, "User"));
  document.querySelectorAll(args.response).forEach((el) => add(el, "Assistant"));
  window[args.counter] = next;
  controls.sort((a, b) => a.top - b.top);
  return controls;
}"""

TRIGGER_CONTROL = """(args) => {
  const el = document.querySelector("[" + args.attr + "='" + args.id + "']");
  if (!el) return false;
  el.scrollIntoView({block: "center"});
  el.click();
  return true;
}"""

READ_CLIPBOARD = """async () => {
  if (!document.hasFocus()) {
    return {ok: false, name: "NotFocused", message: "Document is not focused."};
  }
  try {
    return {ok: true, text: await navigator.clipboard.readText()};
  } catch (e) {
    return {ok: false, name: e.name || "Error", message: String(e.message || e)};
  }
}"""


# =============================================================================
# Export capture
# =============================================================================

INSTALL_CAPTURE = """(args) => {
  if (window[args.key]) return false;
  const state = {
    payloads: [],
    click: HTMLAnchorElement.prototype.click,
    createObjectURL: URL.createObjectURL,
  };
  const isText = (blob) => !blob.type || /text|markdown/.test(blob.type);
  URL.createObjectURL = function (obj) {
    if (obj instanceof Blob && isText(obj)) {
      obj.text().then((t) => state.payloads.push(t));
    }
    return state.createObjectURL.call(URL, obj);
  };
  HTMLAnchorElement.prototype.click = function () {
    const href = this.href || "";
    if (this.hasAttribute("download") || href.startsWith("data:")) {
      if (href.startsWith("data:")) state.payloads.push(href);
      return undefined;
    }
    return state.click.call(this);
  };
  window[args.key] = state;
  return true;
}"""

TAKE_CAPTURED = """(args) => {
  const state = window[args.key];
  if (!state) return [];
  return state.payloads.splice(0, state.payloads.length);
}"""

REMOVE_CAPTURE = """(args) => {
  const state = window[args.key];
  if (!state) return false;
  URL.createObjectURL = state.createObjectURL;
  HTMLAnchorElement.prototype.click = state.click;
  delete window[args.key];
  return true;
}"""

TRIGGER_EXPORT = """async (args) => {
  const wait = () => new Promise((r) => setTimeout(r, args.delay));
  const scope = args.deep ? document.querySelector(args.panel) || document : document;
  const byText = (root, pattern) =>
    Array.from(root.querySelectorAll("button, [role='button'], [role='menuitem']"))
      .find((el) => pattern.test((el.innerText || "") + " " + (el.getAttribute("aria-label") || "")));
  let item = byText(document, /markdown/i);
  if (!item) {
    const menu = byText(scope, /^\\s*(export|share|more|thread actions)\\b/i)
      || scope.querySelector("button[aria-label*='More' i], button[aria-label*='Export' i]");
    if (!menu) return false;
    menu.click();
    await wait();
    const exportItem = byText(document, /^\\s*export\\b/i);
    if (exportItem && exportItem !== menu) {
      exportItem.click();
      await wait();
    }
    item = byText(document, /markdown/i);
  }
  if (!item) return false;
  item.click();
  return true;
}"""


# =============================================================================
# Navigation blocker
# =============================================================================

INSTALL_NAV_BLOCKER = """(args) => {
  if (window[args.key]) return false;
  const onClick = (event) => {
    const link = event.target && event.target.closest ? event.target.closest("a[href]") : null;
    if (!link) return;
    const external = link.origin !== location.origin || link.target === "_blank";
    if (external) {
      event.preventDefault();
      event.stopPropagation();
    }
  };
  const state = {onClick, open: window.open};
  document.addEventListener("click", onClick, true);
  window.open = () => null;
  window[args.key] = state;
  return true;
}"""

REMOVE_NAV_BLOCKER = """(args) => {
  const state = window[args.key];
  if (!state) return false;
  document.removeEventListener("click", state.onClick, true);
  window.open = state.open;
  delete window[args.key];
  return true;
}"""

HAS_FOCUS = "() => document.hasFocus()"
