"""Browser-side scripts evaluated through Playwright."""

# Returns [{xpath, html}] for visible nodes whose tag is in `tags`.
COLLECT_LOCATIONS = r"""
({ tags, maxLength }) => {
  const allowed = new Set(tags.map((t) => t.toLowerCase()))
  const locations = []

  const count = (xpath) => {
    try {
      return document.evaluate(xpath, document, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null).snapshotLength
    } catch {
      return 0
    }
  }

  const quotable = (value) => value && !value.includes('"')

  const ownText = (el) =>
    [...el.childNodes].filter((n) => n.nodeType === 3).map((n) => n.nodeValue).join('').trim()

  const positional = (el) => {
    const parts = []
    for (; el && el.nodeType === 1; el = el.parentNode) {
      let index = 1
      for (let sib = el.previousElementSibling; sib; sib = sib.previousElementSibling) {
        if (sib.nodeName === el.nodeName) index++
      }
      const tag = el.nodeName.toLowerCase()
      parts.unshift(index > 1 ? `${tag}[${index}]` : tag)
    }
    return '//' + parts.join('/')
  }

  const locate = (el) => {
    const tag = el.nodeName.toLowerCase()
    for (const attr of ['id', 'data-testid', 'data-test-id', 'data-qa']) {
      const value = el.getAttribute(attr)
      if (quotable(value)) {
        const xpath = `//*[@${attr}="${value}"]`
        if (count(xpath) === 1) return xpath
      }
    }
    const href = el.getAttribute('href')
    if (tag === 'a' && quotable(href)) {
      const xpath = `//a[@href="${href}"]`
      if (count(xpath) === 1) return xpath
    }
    const cls = el.getAttribute('class')
    const text = ownText(el)
    if (quotable(cls) && quotable(text)) {
      const xpath = `//${tag}[@class="${cls}" and text()="${text}"]`
      if (count(xpath) === 1) return xpath
    }
    return positional(el)
  }

  const visible = (el) => {
    const rect = el.getBoundingClientRect()
    if (rect.width * rect.height === 0) return false
    return el.checkVisibility?.({ checkOpacity: true, checkVisibilityCSS: true, contentVisibilityAuto: true }) ?? true
  }

  for (const el of document.querySelectorAll('*:not(head):not(script):not(style)')) {
    if (!allowed.has(el.nodeName.toLowerCase()) || !visible(el)) continue
    const clone = el.cloneNode(false)
    clone.textContent = ownText(el)
    if (clone.outerHTML.length > maxLength) continue
    locations.push({ xpath: locate(el), html: clone.outerHTML })
  }

  return locations
}
"""

CLEAR_SITE_DATA = r"""
async () => {
  try { localStorage.clear(); sessionStorage.clear() } catch {}
  if (window.caches) {
    const keys = await caches.keys()
    await Promise.all(keys.map((key) => caches.delete(key)))
  }
  if (window.indexedDB && indexedDB.databases) {
    const databases = await indexedDB.databases()
    databases.filter((db) => db.name).forEach((db) => indexedDB.deleteDatabase(db.name))
  }
  if (navigator.serviceWorker) {
    const registrations = await navigator.serviceWorker.getRegistrations()
    await Promise.all(registrations.map((r) => r.unregister()))
  }
}
"""

PANEL_CSS = r"""
#plwd-panel { position: fixed; right: 16px; bottom: 16px; width: 360px; z-index: 2147483647;
  display: none; flex-direction: column; gap: 8px; padding: 12px; border-radius: 8px;
  background: #282c34; color: #e0e0e0; font: 13px/1.4 system-ui, sans-serif; box-shadow: 0 4px 16px rgba(0,0,0,.4) }
#plwd-panel.open { display: flex }
#plwd-panel input.plwd-input { width: 100%; padding: 6px; border-radius: 4px; border: 1px solid #555;
  background: #1e2127; color: #e0e0e0 }
#plwd-panel button { padding: 4px 10px; border: 0; border-radius: 4px; cursor: pointer; background: #3e4451; color: #e0e0e0 }
#plwd-panel .plwd-row { display: flex; gap: 6px; justify-content: flex-end }
#plwd-loader-box { display: none; height: 3px; background: linear-gradient(90deg, #61afef, #c678dd); }
#plwd-loader-box.on { display: block }
#plwd-timeline { max-height: 180px; overflow-y: auto; margin: 0; padding-left: 18px }
#plwd-timeline li { display: flex; justify-content: space-between; gap: 6px }
#plwd-timeline li.fail { color: #e06c75 }
#plwd-timeline li.pass { color: #98c379 }
#plwd-toast { position: fixed; left: 50%; top: 24px; transform: translateX(-50%); z-index: 2147483647;
  padding: 8px 14px; border-radius: 6px; background: #282c34; font: 13px system-ui, sans-serif }
"""

# Mounts the panel once per document; the CSS is passed as the argument.
SET_PANEL = r"""
(css) => {
  const mount = () => {
    if (document.getElementById('plwd-panel')) return
    const style = document.createElement('style')
    style.textContent = css
    document.head.appendChild(style)

    const panel = document.createElement('div')
    panel.id = 'plwd-panel'
    panel.innerHTML = `
      <div id="plwd-loader-box"></div>
      <input id="plwd-input" class="plwd-input" placeholder="Step description" />
      <div class="plwd-row">
        <button id="plwd-cancel-btn">Cancel</button>
        <button id="plwd-accept-btn">Accept</button>
      </div>
      <ol id="plwd-timeline"></ol>
      <div class="plwd-row">
        <button id="plwd-clear-btn">Clear all</button>
        <button id="plwd-dry-run-btn">Dry run</button>
      </div>`
    document.body.appendChild(panel)

    panel.querySelector('#plwd-accept-btn').addEventListener('click', () => window.acceptEvent())
    panel.querySelector('#plwd-cancel-btn').addEventListener('click', () => window.dropEvent())
    panel.querySelector('#plwd-clear-btn').addEventListener('click', () => window.clearAll())
    panel.querySelector('#plwd-dry-run-btn').addEventListener('click', () => window.dryRun())
    panel.querySelector('#plwd-timeline').addEventListener('click', (event) => {
      const index = event.target.dataset && event.target.dataset.deleteStep
      if (index !== undefined) window.deleteStep(parseInt(index))
    })
  }
  if (document.readyState === 'loading') document.addEventListener('DOMContentLoaded', mount)
  else mount()
}
"""

# Reports gestures to the Python side through the exposed `emit` binding.
SET_EVENT_LISTENERS = r"""
() => {
  let hoverTimeout

  const inPanel = (el) => Boolean(el && el.closest && el.closest('#plwd-panel'))

  const ownText = (el) =>
    [...el.childNodes].filter((n) => n.nodeType === 3).map((n) => n.nodeValue).join(' ').trim()

  const positional = (el) => {
    const parts = []
    for (; el && el.nodeType === 1; el = el.parentNode) {
      let index = 1
      for (let sib = el.previousElementSibling; sib; sib = sib.previousElementSibling) {
        if (sib.nodeName === el.nodeName) index++
      }
      const tag = el.nodeName.toLowerCase()
      parts.unshift(index > 1 ? `${tag}[${index}]` : tag)
    }
    return '//' + parts.join('/')
  }

  const frameSrc = () => (window.self === window.top ? undefined : document.location.href)

  const describe = (el) => {
    const tag = el.nodeName.toLowerCase()
    const attributes = [...el.attributes].map((a) => `${a.name}="${a.value}"`).join(' ')
    return {
      frameSrc: frameSrc(),
      html: `<${tag}${attributes ? ' ' + attributes : ''}>${ownText(el)}</${tag}>`,
      xpath: positional(el)
    }
  }

  const textTypes = ['color', 'date', 'datetime-local', 'email', 'text', 'month', 'number',
    'password', 'range', 'search', 'tel', 'time', 'url', 'week']

  document.addEventListener('click', (event) => {
    clearTimeout(hoverTimeout)
    const el = event.target
    if (inPanel(el) || ['INPUT', 'TEXTAREA', 'SELECT', 'OPTION'].includes(el.nodeName)) return
    window.emit({ name: 'click', params: describe(el) })
  }, true)

  document.addEventListener('mouseover', (event) => {
    clearTimeout(hoverTimeout)
    const el = event.target
    if (inPanel(el)) return
    hoverTimeout = setTimeout(() => window.emit({ name: 'hover', params: describe(el) }), 3000)
  }, true)

  document.addEventListener('change', (event) => {
    clearTimeout(hoverTimeout)
    const el = event.target
    if (el.id === 'plwd-input') return window.updateInput(el.value)
    if (inPanel(el)) return
    if (el.nodeName === 'SELECT') {
      return window.emit({ name: 'select', params: { ...describe(el), option: el.value } })
    }
    if (el.nodeName === 'TEXTAREA' || textTypes.includes(el.type)) {
      if (!el.value) return
      return window.emit({ name: 'input', params: { ...describe(el), text: el.value } })
    }
    return window.emit({ name: 'click', params: describe(el) })
  }, true)

  document.addEventListener('keydown', (event) => {
    if (event.key === 'Escape') window.stopDryRun()
  }, true)
}
"""

TOGGLE_CLASS = r"""
(el, { name, on }) => { if (on) el.classList.add(name); else el.classList.remove(name) }
"""

HAS_CLASS = r"""
(el, name) => el.classList.contains(name)
"""

SET_INPUT = r"""
(el, { value, disabled }) => { el.value = value; el.disabled = disabled }
"""

# `steps` is [{input, success}] where success may be null.
SET_TIMELINE = r"""
(el, steps) => {
  el.innerHTML = ''
  steps.forEach((step, index) => {
    const li = document.createElement('li')
    if (step.success === true) li.className = 'pass'
    if (step.success === false) li.className = 'fail'
    const label = document.createElement('span')
    label.textContent = step.input
    const remove = document.createElement('button')
    remove.textContent = 'x'
    remove.dataset.deleteStep = String(index)
    li.append(label, remove)
    el.appendChild(li)
  })
}
"""

SHOW_MESSAGE = r"""
({ content, color }) => {
  const toast = document.createElement('div')
  toast.id = 'plwd-toast'
  toast.textContent = content
  toast.style.color = color
  document.body.appendChild(toast)
  setTimeout(() => toast.remove(), 2000)
}
"""
