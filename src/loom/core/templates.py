"""Starter project templates for loom.

A new session starts from ``boilerplate_tree()`` and then merges the base
artifact of the detected template (``react`` or ``node``). Base artifacts are
written in the same tagged grammar the model is asked to produce, so they go
through the normal parser and merger.
"""

import json
from dataclasses import dataclass, field

from ..models import FileTreeNode

REACT = "react"
NODE = "node"
TEMPLATES = (REACT, NODE)

_PACKAGE_JSON = {
    "name": "generated-app",
    "version": "0.0.0",
    "type": "module",
    "scripts": {"dev": "vite", "build": "vite build", "preview": "vite preview"},
    "dependencies": {
        "react": "^18.3.1",
        "react-dom": "^18.3.1",
        "react-router-dom": "^6.20.0",
        "lucide-react": "^0.344.0",
        "axios": "^1.7.0",
    },
    "devDependencies": {
        "@types/react": "^18.2.48",
        "@types/react-dom": "^18.2.18",
        "@vitejs/plugin-react": "^4.2.1",
        "typescript": "^5.3.3",
        "vite": "^5.0.8",
        "autoprefixer": "^10.4.17",
        "postcss": "^8.4.32",
        "tailwindcss": "^3.4.1",
    },
}

_TSCONFIG = {
    "compilerOptions": {
        "target": "ES2020",
        "useDefineForClassFields": True,
        "lib": ["ES2020", "DOM", "DOM.Iterable"],
        "module": "ESNext",
        "skipLibCheck": True,
        "esModuleInterop": True,
        "allowSyntheticDefaultImports": True,
        "strict": True,
        "noEmit": True,
        "moduleResolution": "bundler",
        "resolveJsonModule": True,
        "noImplicitAny": False,
    },
    "include": ["src"],
    "references": [{"path": "./tsconfig.node.json"}],
}

_TSCONFIG_NODE = {
    "compilerOptions": {
        "composite": True,
        "skipLibCheck": True,
        "module": "ESNext",
        "moduleResolution": "bundler",
        "allowSyntheticDefaultImports": True,
    },
    "include": ["vite.config.ts"],
}

_APP_TSX = """import React from 'react';

export default function App() {
  return (
    <div className="flex items-center justify-center min-h-screen bg-gradient-to-br from-blue-500 to-purple-600">
      <div className="text-center">
        <h1 className="text-4xl font-bold text-white mb-4">Welcome to Your App</h1>
        <p className="text-xl text-blue-100">Start prompting to generate your next feature</p>
      </div>
    </div>
  );
}"""

MAIN_TSX = """import React from 'react';
import ReactDOM from 'react-dom/client';
import App from './App';
import './index.css';

ReactDOM.createRoot(document.getElementById('root')!).render(
  <React.StrictMode>
    <App />
  </React.StrictMode>,
);"""

_INDEX_CSS = """@tailwind base;
@tailwind components;
@tailwind utilities;

body {
  margin: 0;
  padding: 0;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Roboto', sans-serif;
}"""

_INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Generated App</title>
  </head>
  <body>
    <div id="root"></div>
    <script type="module" src="/src/main.tsx"></script>
  </body>
</html>"""

_VITE_CONFIG = """import { defineConfig } from 'vite'
import react from '@vitejs/plugin-react'

export default defineConfig({
  plugins: [react()],
})"""

_POSTCSS_CONFIG = """export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
}"""

_TAILWIND_CONFIG = """/** @type {import('tailwindcss').Config} */
export default {
  content: ['./index.html', './src/**/*.{js,ts,jsx,tsx}'],
  theme: {
    extend: {},
  },
  plugins: [],
}"""


def boilerplate_tree() -> list[FileTreeNode]:
    """Return a fresh copy of the starter Vite + React + Tailwind tree."""
    return [
        FileTreeNode.folder(
            "/src",
            [
                FileTreeNode.file("/src/App.tsx", _APP_TSX),
                FileTreeNode.file("/src/main.tsx", MAIN_TSX),
                FileTreeNode.file("/src/index.css", _INDEX_CSS),
                FileTreeNode.file("/src/vite-env.d.ts", '/// <reference types="vite/client" />'),
            ],
        ),
        FileTreeNode.file("/index.html", _INDEX_HTML),
        FileTreeNode.file("/package.json", json.dumps(_PACKAGE_JSON, indent=2)),
        FileTreeNode.file("/vite.config.ts", _VITE_CONFIG),
        FileTreeNode.file("/tsconfig.json", json.dumps(_TSCONFIG, indent=2)),
        FileTreeNode.file("/postcss.config.js", _POSTCSS_CONFIG),
        FileTreeNode.file("/tailwind.config.js", _TAILWIND_CONFIG),
        FileTreeNode.file("/tsconfig.node.json", json.dumps(_TSCONFIG_NODE, indent=2)),
    ]


DESIGN_PROMPT = (
    "For all designs I ask you to make, have them be beautiful, not cookie cutter. "
    "Make webpages that are fully featured and worthy for production.\n\n"
    "By default, this template supports JSX syntax with Tailwind CSS classes, React hooks, "
    "and Lucide React for icons. Do not install other packages for UI themes, icons, etc "
    "unless absolutely necessary or I request them.\n\n"
    "Use icons from lucide-react for logos.\n\n"
    "Use stock photos from unsplash where appropriate, only valid URLs you know exist. "
    "Do not download the images, only link to them in image tags.\n\n"
)


def _artifact(files: dict[str, str]) -> str:
    actions = "".join(
        f'<boltAction type="file" filePath="{path}">{content}\n</boltAction>'
        for path, content in files.items()
    )
    return f'<boltArtifact id="project-import" title="Project Files">{actions}</boltArtifact>'


NODE_BASE_ARTIFACT = _artifact(
    {
        "index.js": (
            "// run `node index.js` in the terminal\n\n"
            "console.log(`Hello Node.js v${process.versions.node}!`);"
        ),
        "package.json": json.dumps(
            {
                "name": "node-starter",
                "private": True,
                "scripts": {"test": 'echo "Error: no test specified" && exit 1'},
            },
            indent=2,
        ),
    }
)

REACT_BASE_ARTIFACT = _artifact(
    {
        "index.html": _INDEX_HTML,
        "package.json": json.dumps(_PACKAGE_JSON, indent=2),
        "postcss.config.js": _POSTCSS_CONFIG,
        "tailwind.config.js": _TAILWIND_CONFIG,
        "tsconfig.json": json.dumps(_TSCONFIG, indent=2),
        "tsconfig.node.json": json.dumps(_TSCONFIG_NODE, indent=2),
        "vite.config.ts": _VITE_CONFIG,
        "src/App.tsx": (
            "import React from 'react';\n\n"
            "function App() {\n"
            "  return (\n"
            '    <div className="min-h-screen bg-gray-100 flex items-center justify-center">\n'
            "      <p>Start prompting (or editing) to see magic happen :)</p>\n"
            "    </div>\n"
            "  );\n"
            "}\n\n"
            "export default App;"
        ),
        "src/index.css": "@tailwind base;\n@tailwind components;\n@tailwind utilities;",
        "src/main.tsx": MAIN_TSX,
        "src/vite-env.d.ts": '/// <reference types="vite/client" />',
    }
)

_HIDDEN_FILES_NOTE = (
    "Here is a list of files that exist on the file system but are not being shown to you:"
    "\n\n  - .gitignore\n  - package-lock.json\n"
)


def _artifact_prompt(base_artifact: str) -> str:
    return (
        "Here is an artifact that contains all files of the project visible to you.\n"
        "Consider the contents of ALL files in the project.\n\n"
        f"{base_artifact}\n\n{_HIDDEN_FILES_NOTE}"
    )


@dataclass
class TemplatePrompts:
    """Prompts that seed a session for one template.

    Attributes:
        prompts: User turns sent ahead of the task in the first generation.
        ui_prompts: Base artifacts parsed and merged into the starter tree.
    """

    prompts: list[str] = field(default_factory=list)
    ui_prompts: list[str] = field(default_factory=list)


def template_prompts(template: str) -> TemplatePrompts | None:
    """Return the seeding prompts for ``template``, or None if unknown."""
    if template == REACT:
        return TemplatePrompts(
            prompts=[DESIGN_PROMPT, _artifact_prompt(REACT_BASE_ARTIFACT)],
            ui_prompts=[REACT_BASE_ARTIFACT],
        )
    if template == NODE:
        return TemplatePrompts(
            prompts=[_artifact_prompt(NODE_BASE_ARTIFACT)],
            ui_prompts=[NODE_BASE_ARTIFACT],
        )
    return None
