#!/usr/bin/env python3
"""
Sprite Generator Web Interface

A simple Gradio-based web UI for previewing procedural sprite sheets.

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import sys
from pathlib import Path
import tempfile

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from sprite_generator import SpriteGenerator, SheetKind, is_procedural_pack

GENERATOR = SpriteGenerator(user_assets=True)
PACK_IDS = GENERATOR.packs.ids()
KIND_LABELS = [k.value for k in SheetKind]


def render_sheet(
    pack_id: str,
    kind: str,
    seed: int,
    tile_width: int,
    tile_height: int,
    export_atlas: bool
):
    """
    Render one sheet of a registered pack.

    Returns preview image, stats text, and file paths for downloads.
    """
    if not pack_id:
        return None, "Pick a pack first.", None, None

    generator = SpriteGenerator(packs=GENERATOR.packs, extensions=GENERATOR.extensions)
    generator.use_pack(pack_id).allow_file_backed()
    generator.set_seed(int(seed)).set_tile_size(int(tile_width), int(tile_height))

    sheet = generator.generate(kind)
    if sheet is None:
        return None, f"Pack **{pack_id}** has no cell map for **{kind}**.", None, None

    stats = generator.get_stats()
    source = "procedural" if is_procedural_pack(GENERATOR.packs.get(pack_id)) else "file-backed (forced)"
    stats_text = f"""## Sheet Generated

| Metric | Value |
|--------|-------|
| Pack | {stats['name']} ({source}) |
| Kind | {kind} |
| Sheet Size | {sheet.width} x {sheet.height} pixels |
| Tile Size | {stats['tile_size']} |
| Grid | {stats['grid']} ({stats['layout']}-major) |
| Seed | {stats['seed']} |

**Supported kinds:** {', '.join(stats['kinds'])}
"""

    export_dir = Path(tempfile.mkdtemp(prefix="sprites_"))
    written = generator.save_sheet(kind, sheet, export_dir, atlas=export_atlas)
    png_path = next((str(p) for p in written if p.suffix == ".png"), None)
    atlas_path = next((str(p) for p in written if p.suffix == ".json"), None)

    return sheet, stats_text, png_path, atlas_path


# Build the Gradio interface
with gr.Blocks(title="Sprite Generator") as app:

    gr.Markdown("""
    # Sprite Generator
    ### Procedural Isometric Sprite Sheets

    Pick a pack and a sheet kind, adjust the seed and tile size, and download the sheet!
    """)

    with gr.Row():
        # Left column - Settings
        with gr.Column(scale=1):
            gr.Markdown("### Pack")

            pack_dropdown = gr.Dropdown(
                choices=PACK_IDS,
                value="procedural" if "procedural" in PACK_IDS else PACK_IDS[0],
                label="Sprite Pack"
            )

            kind_dropdown = gr.Dropdown(
                choices=KIND_LABELS,
                value="main",
                label="Sheet Kind"
            )

            gr.Markdown("### Settings")

            seed = gr.Number(value=1337, precision=0, label="Seed")

            tile_width = gr.Slider(
                minimum=16,
                maximum=512,
                value=256,
                step=1,
                label="Tile Width"
            )

            tile_height = gr.Slider(
                minimum=16,
                maximum=512,
                value=213,
                step=1,
                label="Tile Height"
            )

            export_atlas = gr.Checkbox(value=True, label="Export JSON atlas")

            generate_btn = gr.Button("Generate Sheet", variant="primary")

        # Middle column - Preview
        with gr.Column(scale=2):
            gr.Markdown("### Preview")

            sheet_preview = gr.Image(
                label="Sheet Preview",
                type="pil",
                image_mode="RGBA"
            )

            stats_output = gr.Markdown(
                value="Choose a pack and click 'Generate' to see results."
            )

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Downloads")

            png_output = gr.File(label="PNG Sheet")
            atlas_output = gr.File(label="JSON Atlas")

            gr.Markdown("""
            ---
            **Tips:**
            - **main / construction / abandoned** share one layout
            - **parks, dense, ...** need a cell map in the pack
            - Same seed = same pixels
            """)

    generate_btn.click(
        fn=render_sheet,
        inputs=[
            pack_dropdown,
            kind_dropdown,
            seed,
            tile_width,
            tile_height,
            export_atlas
        ],
        outputs=[sheet_preview, stats_output, png_output, atlas_output]
    )


if __name__ == "__main__":
    print("\n" + "="*60)
    print("Sprite Generator Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
