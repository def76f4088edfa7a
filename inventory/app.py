"""
Flask Inventory Application

A small web front end over the local item store.

Features include:
    Adding items with a name, price and quantity
    An item details page that follows the item's live state
    Selling one unit of an item at a time
    Editing and deleting items
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict

from flask import Flask, render_template, request, flash, redirect, url_for, jsonify

from . import config
from .database import InventoryDatabase
from .item_details import ItemDetailsDestination, ItemDetailsViewModel
from .item_edit import ItemEditViewModel
from .item_entry import ItemEntryViewModel
from .items import ItemDetails
from .repository import AppDataContainer
from .view_model import SavedStateHandle

logger = logging.getLogger(__name__)

app = Flask(__name__, template_folder=os.path.join(os.path.dirname(__file__), "..", "templates"))
app.secret_key = config.secret_key()
app.config['DATABASE'] = config.database_path()


def init_database():
    """
    Open the shared store at the configured path

    Creates the items table if it has not been created yet. A store written
    with another schema version is dropped and recreated.

    Returns:
        InventoryDatabase: The process wide store
    """
    return InventoryDatabase.get_database(app.config['DATABASE'])


def configure_logging():
    logging.basicConfig(level=config.log_level(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')


def items_repository():
    """
    Repository of the running application, built on first use

    Returns:
        ItemsRepository: Repository over the shared store
    """
    container = app.extensions.get('inventory_container')
    if container is None:
        container = AppDataContainer(app.config['DATABASE'])
        app.extensions['inventory_container'] = container
    return container.items_repository


def saved_state(item_id):
    return SavedStateHandle({ItemDetailsDestination.ITEM_ID_ARG: item_id})


def is_bound(ui_state, item_id):
    # Stored ids start at 1; an unbound screen still shows the empty item with id 0
    return item_id > 0 and ui_state.item_details.id == item_id


@contextmanager
def observed(state_flow):
    """
    Keep a state flow collected for the duration of the block

    Yields:
        StateFlow: The flow, with its live query running
    """
    subscription = state_flow.subscribe(lambda state: None)
    try:
        yield state_flow
    finally:
        subscription.cancel()


def read_item_details(form, item_id=0):
    """
    Build ItemDetails from a submitted form

    Args:
        form (MultiDict): Submitted form fields
        item_id (int): Id of the item being edited, 0 for a new item

    Returns:
        ItemDetails: The form contents
    """
    return ItemDetails(
        id=item_id,
        name=form.get('name', ''),
        price=form.get('price', ''),
        quantity=form.get('quantity', ''),
    )


@app.route('/')
@app.route('/home')
def home():
    """
    Display the home page

    Returns:
        str: Rendered home template with the number of stored items
    """
    return render_template('home.html', item_count=items_repository().count_items())


@app.route('/item/open')
def open_item():
    """
    Open the details page of the item id typed on the home page

    Returns:
        Response: Redirect to the details page, or home if the id is invalid
    """
    item_id = request.args.get('item_id', type=int)
    if item_id is None:
        flash('Please enter an item number.')
        return redirect(url_for('home'))
    return redirect(url_for('item_details', item_id=item_id))


@app.route('/item/new', methods=['GET', 'POST'])
def item_entry():
    """
    Add an item to the inventory

    GET:
        Render the add item form
    POST:
        Insert the item and open its details page

    Returns:
        str | Response: Rendered template or redirect to the details page
    """
    with ItemEntryViewModel(items_repository()) as view_model:
        if request.method == 'POST':
            view_model.update_ui_state(read_item_details(request.form))
            if not view_model.item_ui_state.value.is_entry_valid:
                flash('Please enter a name, a price and a quantity. Price and quantity cannot be negative.')
                return render_template('item_entry.html', ui_state=view_model.item_ui_state.value)
            try:
                item_id = view_model.save_item()
            except sqlite3.Error:
                logger.exception('Could not save item')
                flash('Item could not be saved.')
                return render_template('item_entry.html', ui_state=view_model.item_ui_state.value)
            if item_id == -1:
                flash('Item already found in inventory.')
                return render_template('item_entry.html', ui_state=view_model.item_ui_state.value)
            return redirect(url_for('item_details', item_id=item_id))
        return render_template('item_entry.html', ui_state=view_model.item_ui_state.value)


@app.route('/item/<int:item_id>')
def item_details(item_id):
    """
    Display one item

    Args:
        item_id (int): Id of the item to show

    Returns:
        str: Rendered details template, or 404 when there is no such item
    """
    with ItemDetailsViewModel(saved_state(item_id), items_repository()) as view_model:
        with observed(view_model.ui_state) as ui_state:
            state = ui_state.value
    if not is_bound(state, item_id):
        return "Item not found", 404
    return render_template('item_details.html', ui_state=state)


@app.route('/item/<int:item_id>/state')
def item_state(item_id):
    """
    Current UI state of an item as JSON

    Returns:
        Response: JSON body, or 404 when there is no such item
    """
    with ItemDetailsViewModel(saved_state(item_id), items_repository()) as view_model:
        with observed(view_model.ui_state) as ui_state:
            state = ui_state.value
    if not is_bound(state, item_id):
        return jsonify(error='Item not found'), 404
    body = asdict(state)
    body['item_details']['formatted_price'] = state.item_details.formatted_price()
    return jsonify(body)


def run_command(item_id, command, failure_message):
    """
    Run an item details command and wait for it to finish

    Args:
        item_id (int): Id of the item
        command (callable): Takes the view-model and returns the command's future
        failure_message (str): Flashed when the store rejects the change

    Returns:
        bool: False when there is no such item
    """
    with ItemDetailsViewModel(saved_state(item_id), items_repository()) as view_model:
        with observed(view_model.ui_state) as ui_state:
            if not is_bound(ui_state.value, item_id):
                return False
            try:
                command(view_model).result()
            except sqlite3.Error:
                flash(failure_message)
    return True


@app.route('/item/<int:item_id>/sell', methods=['POST'])
def sell(item_id):
    """
    Sell one unit of an item

    Returns:
        Response: Redirect to the details page
    """
    if not run_command(item_id, ItemDetailsViewModel.reduce_quantity_by_one, 'Could not update the item.'):
        return "Item not found", 404
    return redirect(url_for('item_details', item_id=item_id))


@app.route('/item/<int:item_id>/delete', methods=['POST'])
def delete(item_id):
    """
    Delete an item

    Returns:
        Response: Redirect to the home page
    """
    if not run_command(item_id, ItemDetailsViewModel.delete_item, 'Could not delete the item.'):
        return "Item not found", 404
    return redirect(url_for('home'))


@app.route('/item/<int:item_id>/edit', methods=['GET', 'POST'])
def item_edit(item_id):
    """
    Edit an existing item

    Args:
        item_id (int): Id of the item to edit

    GET:
        Render the edit form with the stored item
    POST:
        Update the item in the database

    Returns:
        str | Response: Rendered template or redirect to the details page
    """
    if items_repository().get_item_stream(item_id).first() is None:
        return "Item not found", 404

    with ItemEditViewModel(saved_state(item_id), items_repository()) as view_model:
        try:
            view_model.loading.result()
        except TimeoutError:
            # Deleted after the check above
            return "Item not found", 404
        if request.method == 'POST':
            view_model.update_ui_state(read_item_details(request.form, item_id))
            if not view_model.update_item():
                flash('Please enter a name, a price and a quantity. Price and quantity cannot be negative.')
                return render_template('item_edit.html', ui_state=view_model.item_ui_state.value)
            return redirect(url_for('item_details', item_id=item_id))
        return render_template('item_edit.html', ui_state=view_model.item_ui_state.value)


if __name__ == '__main__':
    configure_logging()
    init_database()
    app.run(debug=True)
