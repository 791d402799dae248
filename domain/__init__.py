"""Describes the SwipeChef client domain. Centres around the `RecipeSession`.

Why is this hard?

- Nothing here is fast or parallel, it is all about ordering.
- Cards are components with a mount/unmount lifecycle and they own their
  listeners, so a leaked listener is a real bug.
- A swipe is a tiny state machine fed by pointer events: dead zone, gesture
  lock, then a distance OR velocity decision.
- Recipes are made by a language model in two stages and the replies come
  back in whatever shape the model felt like.

The language model and the favourites server sit behind HTTP and can be
faked. Everything else runs headless against `domain.dom`.
"""
